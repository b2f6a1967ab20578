"""
Compression of backup artifacts
"""

import os
import zipfile
from pathlib import Path

from .models import BackupArtifact, ArtifactStage
from .exceptions import CompressionError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def compressed_file_path(source_path: Path) -> Path:
    """``<dbname>-backup.sql`` becomes ``<dbname>-backup.zip``"""
    return Path(source_path).with_suffix(".zip")


def compress_backup_file(source_path: Path, target_path: Path) -> Path:
    """
    Write a single-entry zip archive of ``source_path`` to ``target_path``.

    The archive is built in a ``.part`` file, flushed to disk and only then
    renamed into place, so a reported success always refers to a complete
    archive.

    Args:
        source_path: File to compress
        target_path: Archive to create, overwritten if present

    Returns:
        Path of the created archive

    Raises:
        CompressionError: If the source is missing or writing fails
    """
    source = Path(source_path)
    target = Path(target_path)
    partial = target.with_name(target.name + ".part")

    if not source.is_file():
        raise CompressionError(f"Backup file does not exist: {source}")

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(partial, "wb") as fh:
            with zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zipf:
                zipf.write(source, source.name)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(partial, target)
    except Exception as e:
        # Clean up partial archive on failure
        if partial.exists():
            try:
                partial.unlink()
            except OSError as cleanup_error:
                logger.warning(f"Could not remove partial archive {partial}: {cleanup_error}")
        raise CompressionError(f"Failed to create archive {target}: {e}") from e

    return target


def compress_artifact(artifact: BackupArtifact) -> BackupArtifact:
    """Compress a raw export next to itself"""
    target = compress_backup_file(artifact.path, compressed_file_path(artifact.path))
    logger.info(f"Backup compressed to: {target}")
    return BackupArtifact(kind=artifact.kind, path=target, stage=ArtifactStage.COMPRESSED)
