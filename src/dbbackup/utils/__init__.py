"""
Utilities for the database backup tool
"""

from .logger import get_logger, setup_logging, OperationLogger
from .checksum import generate_checksum

__all__ = [
    'get_logger',
    'setup_logging',
    'OperationLogger',
    'generate_checksum',
]
