"""
Data model for the certificate maker.
Immutable values passed between the resolver, renderer and batch processor.
"""

import math
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from PIL import Image

from utils import helpers
from .config import CONFIG
from .errors import FatalSetupError, InvalidPosition, InvalidRenderOption

RGBA = Tuple[int, int, int, int]

_POINT_PATTERN = re.compile(r'^\s*(-?\d+)\s*,\s*(-?\d+)\s*$')


@dataclass(frozen=True)
class PositionMode:
    """Where to place the glyph run: centered, explicit top-left, or centered on a point."""
    kind: str
    x: Optional[int] = None
    y: Optional[int] = None

    CENTERED = 'centered'
    EXPLICIT = 'explicit'
    CENTERED_AT = 'centered_at'

    @classmethod
    def centered(cls) -> 'PositionMode':
        return cls(cls.CENTERED)

    @classmethod
    def explicit(cls, x: int, y: int) -> 'PositionMode':
        return cls(cls.EXPLICIT, int(x), int(y))

    @classmethod
    def centered_at(cls, x: int, y: int) -> 'PositionMode':
        return cls(cls.CENTERED_AT, int(x), int(y))

    @classmethod
    def parse(cls, spec: str) -> 'PositionMode':
        """Parse 'center', 'x,y' or 'center@x,y'."""
        if isinstance(spec, PositionMode):
            return spec
        if not isinstance(spec, str):
            raise InvalidPosition(f"Position must be a string, got {type(spec).__name__}")
        text = spec.strip().lower()
        if text in ('center', 'centre'):
            return cls.centered()
        if text.startswith('center@'):
            match = _POINT_PATTERN.match(text[len('center@'):])
            if match:
                return cls.centered_at(int(match.group(1)), int(match.group(2)))
            raise InvalidPosition(f"Invalid anchor point in position '{spec}'. Use center@x,y")
        match = _POINT_PATTERN.match(text)
        if match:
            return cls.explicit(int(match.group(1)), int(match.group(2)))
        raise InvalidPosition(f"Invalid position '{spec}'. Use 'center', 'x,y' or 'center@x,y'")

    def __str__(self):
        if self.kind == self.CENTERED:
            return 'center'
        if self.kind == self.CENTERED_AT:
            return f'center@{self.x},{self.y}'
        return f'{self.x},{self.y}'


@dataclass(frozen=True)
class GlyphRunMetrics:
    width_px: float
    height_px: float
    ascent_px: float


@dataclass(frozen=True)
class DrawOrigin:
    x: int
    y: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True)
class NameRecord:
    """One input row. row_index is 0-based over data rows (header excluded)."""
    raw_value: str
    row_index: int

    @property
    def is_blank(self) -> bool:
        return not (self.raw_value or '').strip()

    @classmethod
    def from_csv(cls, file_path: str) -> List['NameRecord']:
        """One record per data row of the CSV's name column (NameSourceError on bad files)."""
        return [cls(raw_value=value, row_index=row_index)
                for row_index, value in helpers.read_name_rows(file_path)]


@dataclass(frozen=True)
class TemplateImage:
    """A fully decoded template. Treat `image` as read-only: render on a copy."""
    image: Image.Image = field(repr=False)
    width: int
    height: int
    format: str
    mode: str
    source: Optional[str] = None


@dataclass(frozen=True)
class RenderConfig:
    """Resolved render parameters shared read-only by every render task."""
    font_bytes: bytes = field(repr=False)
    font_size_pt: float
    color: RGBA
    position: PositionMode
    output_dir: str
    parallelism: int = 1
    output_format: Optional[str] = None
    font_name: str = 'font'

    @classmethod
    def from_options(cls, font_path: Optional[str] = None, font_bytes: Optional[bytes] = None,
                     font_size=None, color=None, position=None, output_dir=None,
                     parallelism=None, output_format=None) -> 'RenderConfig':
        """Validate raw option values and build an immutable config.

        Raises ConfigurationError subclasses for bad options and
        FatalSetupError when the font file cannot be read.
        """
        defaults = CONFIG['render']

        font_size = defaults['default_font_size'] if font_size is None else font_size
        try:
            font_size = float(font_size)
        except (TypeError, ValueError):
            raise InvalidRenderOption(f"Font size must be a number, got '{font_size}'")
        if not math.isfinite(font_size) or font_size <= 0:
            raise InvalidRenderOption(f"Font size must be a finite number greater than 0, got {font_size}")

        rgba = helpers.resolve_color(defaults['default_color'] if color is None else color)
        position_mode = PositionMode.parse(defaults['default_position'] if position is None else position)

        parallelism = CONFIG['batch']['parallelism'] if parallelism is None else parallelism
        try:
            parallelism = int(parallelism)
        except (TypeError, ValueError):
            raise InvalidRenderOption(f"Parallelism must be an integer, got '{parallelism}'")
        if parallelism < 1:
            raise InvalidRenderOption(f"Parallelism must be at least 1, got {parallelism}")

        output_format = defaults['default_output_format'] if output_format is None else output_format
        if output_format is not None:
            output_format = normalize_format(output_format)

        if font_bytes is None:
            if not font_path:
                raise InvalidRenderOption("Either font_path or font_bytes is required")
            try:
                with open(font_path, 'rb') as f:
                    font_bytes = f.read()
            except OSError as e:
                raise FatalSetupError('font', str(e), source=font_path)
        font_name = os.path.basename(font_path) if font_path else 'font'

        return cls(
            font_bytes=font_bytes,
            font_size_pt=font_size,
            color=rgba,
            position=position_mode,
            output_dir=str(output_dir or defaults['default_output_dir']),
            parallelism=parallelism,
            output_format=output_format,
            font_name=font_name,
        )


def normalize_format(name: str) -> str:
    """Map a user format name ('png', 'jpg', 'JPEG') to a Pillow format name."""
    key = str(name).strip().upper()
    if key == 'JPG':
        key = 'JPEG'
    if key not in CONFIG['output']['formats']:
        supported = ', '.join(sorted(CONFIG['output']['formats']))
        raise InvalidRenderOption(f"Unsupported output format '{name}'. Supported: {supported}")
    return key


@dataclass(frozen=True)
class Success:
    row_index: int
    output_path: str
    ok = True


@dataclass(frozen=True)
class Failure:
    row_index: int
    reason: str
    message: str = ''
    ok = False


RenderOutcome = Union[Success, Failure]


@dataclass(frozen=True)
class BatchReport:
    """Outcome of a batch, ordered by row index."""
    successes: Tuple[str, ...]
    failures: Tuple[Failure, ...]
    success_rows: Tuple[int, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes) -> 'BatchReport':
        ordered = sorted(outcomes, key=lambda o: o.row_index)
        successes = [o for o in ordered if isinstance(o, Success)]
        failures = [o for o in ordered if isinstance(o, Failure)]
        return cls(
            successes=tuple(o.output_path for o in successes),
            failures=tuple(failures),
            success_rows=tuple(o.row_index for o in successes),
        )

    @property
    def succeeded(self) -> int:
        return len(self.successes)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def summary(self) -> str:
        lines = [f"Generated {self.succeeded} of {self.total} certificates"]
        if self.failures:
            lines.append(f"Failed: {self.failed}")
            for failure in self.failures:
                lines.append(f"  row {failure.row_index}: {failure.reason} - {failure.message}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ImageProfile:
    path: str
    format: Optional[str]
    width: int
    height: int
    mode: str
    color_depth: int
    bit_depth: int
    has_alpha: bool
    pixel_count: int
    file_size_bytes: int
    suggested_center: DrawOrigin
    size_category: str


@dataclass(frozen=True)
class FontProfile:
    path: str
    family: str
    style: str
    flavor: Optional[str]
    units_per_em: int
    ascender: int
    descender: int
    glyph_count: int
    file_size_bytes: int
