"""
Shared utilities: logging, text and time helpers.
"""

from .logger import StructuredLogMixin, build_log_payload, get_logger, setup_logging

__all__ = [
    "StructuredLogMixin",
    "build_log_payload",
    "get_logger",
    "setup_logging",
]
