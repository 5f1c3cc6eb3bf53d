"""
Image handler module.
Handles loading the template, encoding rendered images and writing them to disk.
"""

import io
import os
import tempfile
from typing import Union

from PIL import Image, UnidentifiedImageError

from .config import CONFIG
from .errors import FatalSetupError, WriteFailure
from .image_effects import restore_mode
from .logger import get_logger
from .models import TemplateImage

logger = get_logger(__name__)

FALLBACK_FORMAT = 'PNG'


def load_template(source: Union[str, bytes, os.PathLike]) -> TemplateImage:
    """
    Load and fully decode a template image from a path or raw bytes.

    Raises:
        FatalSetupError: If the image cannot be opened or decoded completely
    """
    label = source if isinstance(source, (str, os.PathLike)) else '<bytes>'
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(source)
        # Image.open is lazy; load() forces the full decode so a truncated or
        # unsupported file fails here rather than inside a worker.
        img.load()
    except FileNotFoundError as e:
        raise FatalSetupError('template', f"file not found: {e}", source=str(label))
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise FatalSetupError('template', f"could not decode image: {e}", source=str(label))

    width, height = img.size
    if width <= 0 or height <= 0:
        raise FatalSetupError('template', f"invalid dimensions {width}x{height}", source=str(label))

    template = TemplateImage(
        image=img,
        width=width,
        height=height,
        format=img.format or FALLBACK_FORMAT,
        mode=img.mode,
        source=str(label),
    )
    logger.info(f"Loaded template {label}: {width}x{height} {template.format} ({template.mode})")
    return template


def output_format_for(template: TemplateImage, override: str = None) -> str:
    """The Pillow format to write: the override, else the template's own format when writable."""
    if override:
        return override
    if template.format in CONFIG['output']['formats']:
        return template.format
    logger.warning(f"Template format {template.format} is not a supported output format; writing {FALLBACK_FORMAT}.")
    return FALLBACK_FORMAT


def extension_for(output_format: str) -> str:
    return CONFIG['output']['formats'][output_format]


def encode_image(image: Image.Image, output_format: str, template_mode: str) -> bytes:
    """Encode an image in memory so nothing touches disk until encoding succeeded."""
    try:
        final_image = restore_mode(image, template_mode, output_format)
        buffer = io.BytesIO()
        save_kwargs = {}
        if output_format == 'JPEG':
            save_kwargs['quality'] = CONFIG['output']['jpeg_quality']
        final_image.save(buffer, format=output_format, **save_kwargs)
        return buffer.getvalue()
    except (OSError, ValueError, KeyError) as e:
        raise WriteFailure(f"Failed to encode image as {output_format}: {e}")


def write_image_atomic(data: bytes, output_path: str) -> str:
    """
    Write encoded image bytes to output_path via a temporary file in the same
    directory, so a failed write never leaves a partial output behind.
    """
    directory = os.path.dirname(output_path) or '.'
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix=os.path.splitext(output_path)[1])
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.chmod(tmp_path, 0o644)  # mkstemp creates 0600
        os.replace(tmp_path, output_path)
        tmp_path = None
        return output_path
    except OSError as e:
        raise WriteFailure(f"Failed to write {output_path}: {e}")
    finally:
        if tmp_path and os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                logger.warning(f"Could not remove temporary file {tmp_path}")


def ensure_output_dir(output_dir: str) -> str:
    """Create the output directory if needed."""
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise FatalSetupError('output directory', str(e), source=output_dir)
    if not os.path.isdir(output_dir):
        raise FatalSetupError('output directory', 'path exists and is not a directory', source=output_dir)
    return output_dir
