"""
Error taxonomy for the backup pipeline
"""


class BackupError(Exception):
    """Base class for every error raised by a backup stage."""
    pass


class UnsupportedDatabaseKind(BackupError):
    """Raised when a request names a database kind that has no strategy."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unsupported database type: {kind}")


class DatabaseConnectionError(BackupError):
    """Raised when a connection to the database server cannot be opened."""
    pass


class ExportError(BackupError):
    """Raised when the export strategy fails to produce its artifact."""
    pass


class CompressionError(BackupError):
    """Raised when archive creation fails."""
    pass


class UploadError(BackupError):
    """Raised when an artifact cannot be transmitted to the remote store."""
    pass


class NotificationError(BackupError):
    """Raised by notification sinks. Never propagates out of the Notifier."""
    pass
