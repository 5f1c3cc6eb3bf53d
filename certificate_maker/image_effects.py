"""
Image compositing module.
Mode conversions and alpha-over compositing used by the renderer and encoder.
"""

from PIL import Image

# Modes Pillow can write for each output format without further conversion
FORMAT_MODES = {
    'PNG': ('RGBA', 'RGB', 'LA', 'L'),
    'JPEG': ('RGB', 'L'),
}


def to_rgba(image):
    """Return an RGBA copy of the image; the input is never modified."""
    if image.mode == 'RGBA':
        return image.copy()
    return image.convert('RGBA')


def new_text_layer(size, color=(0, 0, 0)):
    """A fully transparent layer carrying the text color, so antialiased edges keep their hue."""
    r, g, b = color[:3]
    return Image.new('RGBA', size, (r, g, b, 0))


def composite_layer(base, layer):
    """Alpha-over composite layer onto base (both RGBA, same size)."""
    if base.size != layer.size:
        raise ValueError(f"Layer size {layer.size} does not match base size {base.size}")
    return Image.alpha_composite(base, layer)


def restore_mode(image, template_mode, output_format):
    """
    Convert a rendered RGBA image back into a mode the output format accepts.

    Keeps the template's own mode when the format supports it, so an RGB
    template stays RGB; otherwise falls back to RGBA (PNG) or RGB (JPEG).
    """
    allowed = FORMAT_MODES.get(output_format, ('RGBA',))
    if template_mode in allowed:
        target = template_mode
    elif 'RGBA' in allowed:
        target = 'RGBA'
    else:
        target = 'RGB'

    if image.mode == target:
        return image
    if image.mode == 'RGBA' and target in ('RGB', 'L'):
        # Flatten onto white so transparent areas do not turn black.
        background = Image.new('RGBA', image.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, image)
    return image.convert(target)
