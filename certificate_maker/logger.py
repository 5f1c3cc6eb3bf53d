"""
Logging module for the certificate maker.
Every module logs through get_logger(__name__) so batch output stays uniform.
"""

import logging
from .config import CONFIG

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logging.basicConfig(
    level=logging.DEBUG if CONFIG['debug']['verbose_logging'] else logging.INFO,
    format=LOG_FORMAT
)

def get_logger(name):
    """Get a logger with the specified name."""
    return logging.getLogger(name)

def set_verbose(enabled: bool):
    """Switch the root logger between DEBUG and INFO at runtime (CLI --verbose)."""
    level = logging.DEBUG if enabled else logging.INFO
    logging.getLogger().setLevel(level)
    CONFIG['debug']['verbose_logging'] = enabled
