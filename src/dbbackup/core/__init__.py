"""
Database Backup Tool - Core Module
"""

from .models import (
    BackupArtifact, BackupRequest, BackupResult, BackupStatus, DatabaseKind
)
from .exceptions import (
    BackupError, UnsupportedDatabaseKind, DatabaseConnectionError,
    ExportError, CompressionError, UploadError, NotificationError
)
from .config import ConfigManager
from .database import ConnectionHandle, connect_to_database, open_connection
from .export import export_backup
from .compression import compress_backup_file
from .upload import Uploader, create_uploader
from .notifications import Notifier
from .backup import BackupManager

__all__ = [
    'BackupArtifact',
    'BackupRequest',
    'BackupResult',
    'BackupStatus',
    'DatabaseKind',
    'BackupError',
    'UnsupportedDatabaseKind',
    'DatabaseConnectionError',
    'ExportError',
    'CompressionError',
    'UploadError',
    'NotificationError',
    'ConfigManager',
    'ConnectionHandle',
    'connect_to_database',
    'open_connection',
    'export_backup',
    'compress_backup_file',
    'Uploader',
    'create_uploader',
    'Notifier',
    'BackupManager',
]
