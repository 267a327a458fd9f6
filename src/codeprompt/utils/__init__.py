"""Utility modules for codeprompt"""

from .logging_setup import TRACE_LEVEL, configure_logging, get_logger

__all__ = ['TRACE_LEVEL', 'configure_logging', 'get_logger']
