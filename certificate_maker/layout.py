"""
Layout module.
Turns a placement mode and glyph-run metrics into the pixel origin of the text.
"""

import math

from .models import DrawOrigin, GlyphRunMetrics, PositionMode


def resolve_position(mode: PositionMode, metrics: GlyphRunMetrics,
                     canvas_width: int, canvas_height: int) -> DrawOrigin:
    """Compute the top-left pixel at which the glyph run is drawn.

    Centered placement is clamped to the canvas so the origin stays valid when
    the text is larger than the canvas; explicit coordinates are used as given.
    """
    if mode.kind == PositionMode.CENTERED:
        x = math.floor((canvas_width - metrics.width_px) / 2)
        y = math.floor((canvas_height - metrics.height_px) / 2)
        return DrawOrigin(max(0, x), max(0, y))

    if mode.kind == PositionMode.CENTERED_AT:
        # The anchor point is the middle of the glyph-run box
        x = math.floor(mode.x - metrics.width_px / 2)
        y = math.floor(mode.y - metrics.height_px / 2)
        return DrawOrigin(x, y)

    if mode.kind == PositionMode.EXPLICIT:
        return DrawOrigin(mode.x, mode.y)

    raise ValueError(f"Unknown position mode '{mode.kind}'")
