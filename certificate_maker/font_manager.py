"""
Font management module for the certificate maker.
Validates font bytes with fontTools, unpacks web fonts and hands out Pillow
FreeType fonts per size.
"""

import io
import threading
from typing import Dict, FrozenSet, List

from PIL import ImageFont
from fontTools.ttLib import TTFont

from .errors import FatalSetupError
from .logger import get_logger

logger = get_logger(__name__)

# Magic numbers at the start of supported font containers
TTC_MAGIC = b'ttcf'
WEB_FONT_FLAVORS = ('woff', 'woff2')
OUTLINE_TABLES = ('glyf', 'CFF ', 'CFF2')


class FontManager:
    """
    Holds one loaded font resource for the duration of a batch.

    The instance is shared read-only by every render task: fonts for each size
    are created once under a lock and never modified afterwards.
    """

    def __init__(self, font_bytes: bytes, source_name: str = "font"):
        """
        Validate and prepare a font.

        Args:
            font_bytes: Raw TrueType/OpenType/WOFF/WOFF2/TTC file contents
            source_name: Name used in log messages and errors

        Raises:
            FatalSetupError: If the bytes are not a usable outline font
        """
        self.source_name = source_name
        if not font_bytes:
            raise FatalSetupError('font', 'font data is empty', source=source_name)

        self.font_bytes, self.flavor, self._codepoints = self._prepare(font_bytes)
        self._fonts: Dict[float, ImageFont.FreeTypeFont] = {}
        self._lock = threading.Lock()
        logger.info(f"Font '{source_name}' loaded ({len(self._codepoints)} mapped characters, flavor: {self.flavor or 'sfnt'})")

    def _prepare(self, font_bytes: bytes):
        """Parse with fontTools; unpack WOFF/WOFF2 into plain sfnt bytes for FreeType."""
        font_number = 0 if font_bytes[:4] == TTC_MAGIC else -1
        try:
            tt_font = TTFont(io.BytesIO(font_bytes), fontNumber=font_number)
        except Exception as e:  # TTLibError, struct.error, missing brotli for WOFF2
            raise FatalSetupError('font', f"not a readable font file: {e}", source=self.source_name)

        try:
            if 'cmap' not in tt_font or 'head' not in tt_font:
                raise FatalSetupError('font', "font has no 'cmap' or 'head' table", source=self.source_name)
            if not any(tag in tt_font for tag in OUTLINE_TABLES):
                raise FatalSetupError('font', "font has no glyph outlines", source=self.source_name)

            best_cmap = tt_font.getBestCmap() or {}
            codepoints = frozenset(best_cmap.keys())

            flavor = tt_font.flavor
            if flavor in WEB_FONT_FLAVORS:
                logger.info(f"Unpacking {flavor} font '{self.source_name}' to sfnt")
                tt_font.flavor = None
                buffer = io.BytesIO()
                tt_font.save(buffer)
                font_bytes = buffer.getvalue()
        except FatalSetupError:
            raise
        except Exception as e:
            raise FatalSetupError('font', f"failed to read font tables: {e}", source=self.source_name)
        finally:
            tt_font.close()

        return font_bytes, flavor, codepoints

    @property
    def codepoints(self) -> FrozenSet[int]:
        return self._codepoints

    def get_font(self, font_size: float) -> ImageFont.FreeTypeFont:
        """
        Get the Pillow font for a size, creating it on first use.

        Raises:
            FatalSetupError: If FreeType refuses the font data
        """
        font = self._fonts.get(font_size)
        if font is not None:
            return font

        with self._lock:
            font = self._fonts.get(font_size)
            if font is None:
                try:
                    font = ImageFont.truetype(io.BytesIO(self.font_bytes), font_size)
                except (OSError, ValueError) as e:
                    raise FatalSetupError('font', f"rasterizer could not load font at size {font_size}: {e}",
                                          source=self.source_name)
                logger.debug(f"Created FreeType font '{self.source_name}' at size {font_size}")
                self._fonts[font_size] = font
        return font

    def missing_characters(self, text: str) -> List[str]:
        """Characters of text that will fall back to the notdef glyph."""
        return [c for c in dict.fromkeys(text) if ord(c) not in self._codepoints and not c.isspace()]

    def supports(self, text: str) -> bool:
        return not self.missing_characters(text)

    def line_height(self, font_size: float) -> int:
        ascent, descent = self.get_font(font_size).getmetrics()
        return ascent + descent


