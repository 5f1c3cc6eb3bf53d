"""
Text renderer module.
Measures single-line glyph runs and draws them onto copies of the template.
"""

import io
import unicodedata

from PIL import ImageDraw, ImageFont, Image

from .errors import RenderFailure
from .image_effects import composite_layer, new_text_layer, to_rgba
from .logger import get_logger
from .models import DrawOrigin, GlyphRunMetrics, TemplateImage

logger = get_logger(__name__)

# 'la' = left edge, ascender line: the origin is the top-left of the line box.
DRAW_ANCHOR = "la"


class TextRenderer:
    """Handles the measuring and rendering of a name onto a template."""

    @staticmethod
    def normalize_unicode(text: str) -> str:
        """Normalize Unicode so composed and decomposed input render the same."""
        return unicodedata.normalize('NFC', text)

    @staticmethod
    def _font_at_size(font: ImageFont.FreeTypeFont, size_pt: float) -> ImageFont.FreeTypeFont:
        if getattr(font, 'size', None) == size_pt:
            return font
        # Fonts loaded from memory keep an already-consumed stream as their path
        source = io.BytesIO(font.font_bytes) if getattr(font, 'font_bytes', None) else None
        return font.font_variant(font=source, size=size_pt)

    @staticmethod
    def measure(font: ImageFont.FreeTypeFont, size_pt: float, text: str) -> GlyphRunMetrics:
        """
        Compute the glyph-run box of text at the given size.

        Width is the sum of glyph advances including pair kerning; height is
        ascent + descent, so an empty string still has the full line height.
        Unmapped characters are measured with the notdef glyph advance.
        """
        pil_font = TextRenderer._font_at_size(font, size_pt)
        text = TextRenderer.normalize_unicode(text or '')
        ascent, descent = pil_font.getmetrics()
        width = pil_font.getlength(text) if text else 0.0
        return GlyphRunMetrics(width_px=float(width), height_px=float(ascent + descent), ascent_px=float(ascent))

    @staticmethod
    def render(template: TemplateImage, text: str, font: ImageFont.FreeTypeFont, size_pt: float,
               color, origin: DrawOrigin) -> Image.Image:
        """
        Draw text onto a copy of the template and return the new RGBA image.

        The glyphs are drawn on a transparent layer and alpha-composited onto
        the copy; the shared template image is never written to.
        """
        try:
            pil_font = TextRenderer._font_at_size(font, size_pt)
            canvas = to_rgba(template.image)
            text = TextRenderer.normalize_unicode(text or '')
            if not text:
                logger.debug("Empty text, returning an unmodified copy of the template.")
                return canvas

            layer = new_text_layer(canvas.size, color)
            draw = ImageDraw.Draw(layer)
            draw.text(origin.as_tuple(), text, font=pil_font, fill=tuple(color), anchor=DRAW_ANCHOR)
            return composite_layer(canvas, layer)
        except Exception as e:
            logger.error(f"Failed to render text '{text}' at {origin}: {e}", exc_info=True)
            raise RenderFailure(f"Failed to render text: {e}") from e
