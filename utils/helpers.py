import csv
import io
import os
import re
import unicodedata
from typing import List, Optional, Tuple
import logging

from certificate_maker.errors import InvalidColorFormat, UnknownColorName, NameSourceError

logger = logging.getLogger(__name__) # Setup logger for helpers

# Fixed color table; every entry is fully opaque.
COLOR_NAME_MAP = {
    "white": (255, 255, 255, 255),
    "black": (0, 0, 0, 255),
    "red": (255, 0, 0, 255),
    "green": (0, 255, 0, 255),
    "blue": (0, 0, 255, 255),
    "yellow": (255, 255, 0, 255),
    "orange": (255, 165, 0, 255),
    "purple": (128, 0, 128, 255),
}

_HEX_DIGITS = re.compile(r'^[0-9a-fA-F]+$')

# Characters that are rejected by common filesystems on top of path separators.
_INVALID_FILENAME_CHARS = set('/\\<>:"|?*')

# Most filesystems cap a file name at 255 bytes; leave room for "_<row>.<ext>".
MAX_STEM_BYTES = 200

NAME_COLUMN = 'name'
CSV_PREVIEW_CHARS = 200


def resolve_color(color_spec: str) -> Tuple[int, int, int, int]:
    """Parses '#RRGGBB', '#RRGGBBAA' or a color name into an RGBA tuple."""
    if not isinstance(color_spec, str):
        raise InvalidColorFormat(f"Color must be a string, got {type(color_spec).__name__}")

    color_str = color_spec.strip()

    if color_str.startswith('#'):
        hex_val = color_str[1:]
        logger.debug(f"Attempting HEX parse for: {color_str}")
        if len(hex_val) not in (6, 8) or not _HEX_DIGITS.match(hex_val):
            raise InvalidColorFormat(
                f"Invalid hex color '{color_spec}'. Use #RRGGBB or #RRGGBBAA"
            )
        r = int(hex_val[0:2], 16)
        g = int(hex_val[2:4], 16)
        b = int(hex_val[4:6], 16)
        a = int(hex_val[6:8], 16) if len(hex_val) == 8 else 255
        return (r, g, b, a)

    named = COLOR_NAME_MAP.get(color_str.lower())
    if named is not None:
        logger.debug(f"Parsed color name '{color_str}' -> {named}")
        return named

    known = ', '.join(COLOR_NAME_MAP)
    raise UnknownColorName(f"Unknown color '{color_spec}'. Use a hex code like #FF0000 or one of: {known}")


def sanitize_filename(raw_name: str, fallback: str = "name") -> str:
    """Turn a raw name into a safe file stem.

    Drops path separators, control characters and characters invalid in file
    names, collapses whitespace to '_' and strips leading dots so the result can
    never escape the output directory. Long names are cut to MAX_STEM_BYTES of
    UTF-8 without splitting a character.
    """
    text = unicodedata.normalize('NFC', raw_name or '')
    kept = []
    for char in text:
        if char in _INVALID_FILENAME_CHARS:
            continue
        category = unicodedata.category(char)
        if category.startswith('C'):  # Cc, Cf, Cs, Co, Cn
            continue
        if char.isspace():
            kept.append('_')
        else:
            kept.append(char)
    stem = re.sub(r'_+', '_', ''.join(kept)).strip('_').lstrip('.')
    encoded = stem.encode('utf-8')
    if len(encoded) > MAX_STEM_BYTES:
        stem = encoded[:MAX_STEM_BYTES].decode('utf-8', 'ignore').rstrip('_')
    return stem or fallback


def output_filename(raw_name: str, row_index: int, extension: str) -> str:
    """Deterministic output file name for a row: <sanitized-name>_<row>.<ext>"""
    return f"{sanitize_filename(raw_name)}_{row_index}.{extension}"


def _find_name_column(headers: List[str]) -> Optional[int]:
    for index, header in enumerate(headers):
        if header.strip().lower() == NAME_COLUMN:
            return index
    return None


def read_name_rows(file_path: str) -> List[Tuple[int, str]]:
    """Read the name column of a CSV file as (row_index, name) pairs.

    The header is matched case-insensitively. Blank names are kept so the batch
    can record them as skipped rows instead of silently dropping them.
    """
    if not os.path.exists(file_path):
        raise NameSourceError(f"CSV file not found: {file_path}")
    if os.path.splitext(file_path)[1].lower() != '.csv':
        raise NameSourceError(f"Unsupported file type for {file_path}. Please use .csv files only")

    try:
        with open(file_path, 'r', newline='', encoding='utf-8-sig') as f:
            reader = csv.reader(f)
            headers = next(reader, None)
            if headers is None:
                raise NameSourceError(f"CSV file is empty: {file_path}")
            logger.debug(f"CSV headers found: {headers}")

            name_col_index = _find_name_column(headers)
            if name_col_index is None:
                raise NameSourceError(
                    f"No 'Name' column found in {file_path}. Available columns: {headers}"
                )

            rows = []
            for row_index, row in enumerate(reader):
                value = row[name_col_index].strip() if name_col_index < len(row) else ''
                if not value:
                    logger.info(f"Row {row_index}: empty name, it will be reported as skipped")
                rows.append((row_index, value))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise NameSourceError(f"Failed to read CSV file {file_path}: {e}")

    logger.info(f"Read {len(rows)} rows from {file_path}")
    return rows


def inspect_csv(file_path: str, preview_chars: int = CSV_PREVIEW_CHARS) -> dict:
    """Raw and parsed view of a CSV file, for finding out why names are not read.

    Parse problems are reported in the result rather than raised; only an
    unreadable file raises NameSourceError.
    """
    try:
        size_bytes = os.path.getsize(file_path)
        with open(file_path, 'r', newline='', encoding='utf-8-sig') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise NameSourceError(f"Failed to read file {file_path}: {e}")

    lines = content.splitlines()
    info = {
        'path': file_path,
        'size_bytes': size_bytes,
        'preview': content[:preview_chars],
        'truncated': len(content) > preview_chars,
        'line_count': len(lines),
        'header_line': lines[0] if lines else None,
        'first_data_line': lines[1] if len(lines) > 1 else None,
        'headers': None,
        'column_count': 0,
        'name_column': None,
        'parse_error': None,
    }

    try:
        headers = next(csv.reader(io.StringIO(content, newline='')), None)
    except csv.Error as e:
        info['parse_error'] = str(e)
        return info
    if headers is None:
        info['parse_error'] = "no header row"
        return info

    info['headers'] = headers
    info['column_count'] = len(headers)
    info['name_column'] = _find_name_column(headers)
    return info


def format_csv_report(info: dict) -> str:
    lines = [
        "=== CSV File Debug Info ===",
        f"File: {info['path']}",
        f"File size: {info['size_bytes']} bytes",
        f"First {CSV_PREVIEW_CHARS} characters:",
        info['preview'],
    ]
    if info['truncated']:
        lines.append("... (truncated)")
    lines.append(f"Total lines: {info['line_count']}")
    if info['header_line'] is not None:
        lines.append(f"First line (header): '{info['header_line']}'")
    if info['first_data_line'] is not None:
        lines.append(f"Second line (first data): '{info['first_data_line']}'")

    if info['parse_error']:
        lines.append(f"Failed to parse headers: {info['parse_error']}")
    else:
        lines.append(f"Parsed headers: {info['headers']}")
        lines.append(f"Number of columns: {info['column_count']}")
        if info['name_column'] is None:
            lines.append("Name column: not found")
        else:
            lines.append(f"Name column: index {info['name_column']}")
    return "\n".join(lines)


def create_sample_csv(file_path: str, names: List[str]) -> str:
    """Write a one-column CSV of names, creating parent directories."""
    parent = os.path.dirname(file_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(file_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['Name'])
        for name in names:
            writer.writerow([name])
    logger.info(f"Sample CSV created: {file_path}")
    return file_path
