"""
Analysis module.
Diagnostic reports for template images and font files. Not on the render path.
"""

import os
from typing import Union

from PIL import Image, UnidentifiedImageError
from fontTools.ttLib import TTFont

from .errors import AnalysisError
from .layout import resolve_position
from .logger import get_logger
from .models import FontProfile, GlyphRunMetrics, ImageProfile, PositionMode

logger = get_logger(__name__)

FONT_EXTENSIONS = ('.ttf', '.otf', '.ttc', '.woff', '.woff2')

# Bits per channel for Pillow modes that are not 8-bit
MODE_BIT_DEPTH = {
    '1': 1,
    'I': 32,
    'F': 32,
    'I;16': 16,
    'I;16B': 16,
    'I;16L': 16,
    'I;16N': 16,
}

# (max width, max height, label), checked in order
SIZE_CATEGORIES = (
    (128, 128, "Thumbnail"),
    (512, 512, "Small"),
    (1920, 1080, "Medium (HD)"),
    (3840, 2160, "Large (4K)"),
)

ZERO_METRICS = GlyphRunMetrics(width_px=0.0, height_px=0.0, ascent_px=0.0)


def size_category(width: int, height: int) -> str:
    for max_w, max_h, label in SIZE_CATEGORIES:
        if width <= max_w and height <= max_h:
            return label
    return "Very Large"


def analyze(path: str) -> Union[ImageProfile, FontProfile]:
    """Analyze an image or a font file, chosen by extension."""
    if os.path.splitext(path)[1].lower() in FONT_EXTENSIONS:
        return analyze_font(path)
    return analyze_image(path)


def analyze_image(path: str) -> ImageProfile:
    """
    Read an image's geometry and color information.

    suggested_center is the centered placement of a zero-size text, which is
    the geometric center of the image.
    """
    try:
        file_size = os.path.getsize(path)
        with Image.open(path) as img:
            width, height = img.size
            mode = img.mode
            bands = img.getbands()
            has_alpha = 'A' in bands or 'a' in bands or 'transparency' in img.info
            image_format = img.format
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.error(f"Failed to analyze image {path}: {e}")
        raise AnalysisError(f"Failed to analyze image {path}: {e}")

    bit_depth = MODE_BIT_DEPTH.get(mode, 8)
    center = resolve_position(PositionMode.centered(), ZERO_METRICS, width, height)

    return ImageProfile(
        path=path,
        format=image_format,
        width=width,
        height=height,
        mode=mode,
        color_depth=bit_depth * len(bands),
        bit_depth=bit_depth,
        has_alpha=has_alpha,
        pixel_count=width * height,
        file_size_bytes=file_size,
        suggested_center=center,
        size_category=size_category(width, height),
    )


def analyze_font(path: str) -> FontProfile:
    """Read naming and vertical metrics of a font file with fontTools."""
    try:
        file_size = os.path.getsize(path)
        with open(path, 'rb') as f:
            is_collection = f.read(4) == b'ttcf'
        tt_font = TTFont(path, fontNumber=0 if is_collection else -1, lazy=True)
    except Exception as e:
        logger.error(f"Failed to analyze font {path}: {e}")
        raise AnalysisError(f"Failed to analyze font {path}: {e}")

    try:
        name_table = tt_font['name'] if 'name' in tt_font else None
        family = (name_table.getDebugName(1) if name_table else None) or os.path.basename(path)
        style = (name_table.getDebugName(2) if name_table else None) or "Regular"
        hhea = tt_font['hhea'] if 'hhea' in tt_font else None
        return FontProfile(
            path=path,
            family=family,
            style=style,
            flavor=tt_font.flavor,
            units_per_em=tt_font['head'].unitsPerEm,
            ascender=hhea.ascent if hhea else 0,
            descender=hhea.descent if hhea else 0,
            glyph_count=len(tt_font.getGlyphOrder()),
            file_size_bytes=file_size,
        )
    except Exception as e:
        logger.error(f"Failed to read font tables of {path}: {e}")
        raise AnalysisError(f"Failed to read font tables of {path}: {e}")
    finally:
        tt_font.close()


def format_profile(profile: Union[ImageProfile, FontProfile]) -> str:
    """Render a profile as the human-readable report printed by the CLI."""
    if isinstance(profile, FontProfile):
        lines = [
            "=== Font File Analysis ===",
            f"File: {profile.path}",
            f"File size: {profile.file_size_bytes} bytes ({profile.file_size_bytes / 1024:.2f} KB)",
            f"Family: {profile.family}",
            f"Style: {profile.style}",
            f"Container: {profile.flavor or 'sfnt'}",
            f"Units per em: {profile.units_per_em}",
            f"Ascender / descender: {profile.ascender} / {profile.descender}",
            f"Glyphs: {profile.glyph_count}",
        ]
        return "\n".join(lines)

    aspect = profile.width / profile.height if profile.height else 0.0
    theoretical_size = profile.pixel_count * profile.color_depth // 8
    ratio = theoretical_size / profile.file_size_bytes if profile.file_size_bytes else 0.0
    lines = [
        "=== Image File Analysis ===",
        f"File: {profile.path}",
        f"Format: {profile.format}",
        f"File size: {profile.file_size_bytes} bytes ({profile.file_size_bytes / 1024:.2f} KB)",
        "",
        "--- Image Properties ---",
        f"Dimensions: {profile.width}x{profile.height} pixels",
        f"Total pixels: {profile.pixel_count}",
        f"Aspect ratio: {aspect:.3f}",
        f"Size category: {profile.size_category}",
        "",
        "--- Color Information ---",
        f"Mode: {profile.mode}",
        f"Bit depth: {profile.bit_depth} bits per channel",
        f"Color depth: {profile.color_depth} bits per pixel",
        f"Has transparency: {profile.has_alpha}",
        "",
        "--- Technical Details ---",
        f"Theoretical uncompressed size: {theoretical_size} bytes ({theoretical_size / 1024:.2f} KB)",
        f"Compression ratio: {ratio:.2f}:1",
        f"Suggested center coordinates: ({profile.suggested_center.x}, {profile.suggested_center.y})",
    ]
    return "\n".join(lines)
