# certificate_maker/__init__.py

"""
Certificate rendering module.
Overlays names from a table onto a template image, one output file per name.
"""

# Import configuration and logging setup first
from .config import CONFIG
from .logger import get_logger

from .errors import (
    CertificateMakerError,
    ConfigurationError,
    InvalidColorFormat,
    UnknownColorName,
    InvalidPosition,
    InvalidRenderOption,
    FatalSetupError,
    RowSkipped,
    RenderFailure,
    WriteFailure,
    NameSourceError,
    AnalysisError,
)
from .models import (
    RenderConfig,
    PositionMode,
    NameRecord,
    TemplateImage,
    GlyphRunMetrics,
    DrawOrigin,
    Success,
    Failure,
    BatchReport,
)
from .font_manager import FontManager
from .image_handler import load_template
from .layout import resolve_position
from .text_renderer import TextRenderer
from .processor import BatchProcessor
from .analysis import analyze, analyze_image, analyze_font, format_profile

__all__ = [
    'BatchProcessor',
    'RenderConfig',
    'PositionMode',
    'NameRecord',
    'TemplateImage',
    'GlyphRunMetrics',
    'DrawOrigin',
    'Success',
    'Failure',
    'BatchReport',
    'FontManager',
    'TextRenderer',
    'load_template',
    'resolve_position',
    'analyze',
    'analyze_image',
    'analyze_font',
    'format_profile',
    'CertificateMakerError',
    'ConfigurationError',
    'InvalidColorFormat',
    'UnknownColorName',
    'InvalidPosition',
    'InvalidRenderOption',
    'FatalSetupError',
    'RowSkipped',
    'RenderFailure',
    'WriteFailure',
    'NameSourceError',
    'AnalysisError',
    'CONFIG',
    'get_logger'
]
