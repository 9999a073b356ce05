"""
Utilities package for the axiom project.
"""

from .config import Config
from .logging_config import setup_logging, get_logger
from .text_utils import normalize_text, collapse_whitespace

__all__ = [
    'Config',
    'setup_logging', 'get_logger',
    'normalize_text', 'collapse_whitespace',
]
