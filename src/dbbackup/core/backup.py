"""
Backup orchestration for the database backup tool
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional

from .models import (
    BackupArtifact, BackupRequest, BackupResult, BackupStatus, DatabaseKind
)
from .database import Connector, ConnectionHandle, connect_to_database, open_connection
from .export import export_backup
from .compression import compress_artifact
from .upload import Uploader, LogUploader
from .notifications import Notifier, BACKUP_STARTED, BACKUP_COMPLETED, BACKUP_FAILED
from ..utils.logger import get_logger, OperationLogger
from ..utils.checksum import generate_checksum
from ..utils.validation import is_advisory_backup_type

Exporter = Callable[[DatabaseKind, ConnectionHandle, str, Path], Awaitable[BackupArtifact]]


class BackupManager:
    """Runs connect, export, compress, upload and notify for one request"""

    def __init__(
        self,
        backup_dir: Path,
        notifier: Optional[Notifier] = None,
        uploader: Optional[Uploader] = None,
        connector: Optional[Connector] = None,
        exporter: Optional[Exporter] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.backup_dir = Path(backup_dir)
        self.logger = logger or get_logger(__name__)
        self.notifier = notifier or Notifier(logger=self.logger)
        self.uploader = uploader or LogUploader()
        self.connector = connector or connect_to_database
        self.exporter = exporter or export_backup

    def _transition(self, result: BackupResult, status: BackupStatus):
        self.logger.info(f"Backup of {result.dbname}: {result.status.value} -> {status.value}")
        result.status = status

    async def run_backup(self, request: BackupRequest) -> BackupResult:
        """
        Run one backup to completion or failure.

        Never raises for stage failures: the returned result carries the
        terminal status and error details.
        """
        result = BackupResult(db=request.db, dbname=request.dbname)

        try:
            with OperationLogger(self.logger, f"{request.db} backup of {request.dbname}"):
                kind = DatabaseKind.resolve(request.db)
                self._transition(result, BackupStatus.CONNECTING)

                if is_advisory_backup_type(request.type):
                    self.logger.warning(
                        f"Backup type '{request.type}' is advisory, performing a full export"
                    )

                params = request.connection_params(kind)
                async with open_connection(kind, params, self.connector) as handle:
                    self._transition(result, BackupStatus.CONNECTED)
                    await self.notifier.notify(
                        BACKUP_STARTED,
                        f"Backing up {kind.value} database '{request.dbname}'"
                    )
                    await self._run_stages(kind, handle, request, result)

                final = result.final_artifact
                result.size_bytes = final.path.stat().st_size
                result.checksum = await asyncio.to_thread(generate_checksum, final.path)
                result.end_time = datetime.now()
                self._transition(result, BackupStatus.COMPLETED)

        except Exception as e:
            result.end_time = datetime.now()
            result.error_message = str(e)
            result.error_type = type(e).__name__
            self._transition(result, BackupStatus.FAILED)
            self.logger.error(f"Backup failed: {e}", exc_info=True)
            await self.notifier.notify(BACKUP_FAILED, f"Backup of '{request.dbname}' failed: {e}")
            return result

        self.logger.info("Backup process completed successfully.")
        await self.notifier.notify(
            BACKUP_COMPLETED,
            f"Backup of '{request.dbname}' saved as {result.final_artifact.path}"
        )
        return result

    async def _run_stages(
        self,
        kind: DatabaseKind,
        handle: ConnectionHandle,
        request: BackupRequest,
        result: BackupResult
    ):
        self._transition(result, BackupStatus.EXPORTING)
        artifact = await self.exporter(kind, handle, request.dbname, self.backup_dir)
        result.artifacts.append(artifact)

        if request.compress:
            self._transition(result, BackupStatus.COMPRESSING)
            compressed = await asyncio.to_thread(compress_artifact, artifact)
            result.artifacts.append(compressed)

        if request.cloud:
            self._transition(result, BackupStatus.UPLOADING)
            location = await self.uploader.upload(result.final_artifact.path)
            self.logger.info(f"Backup uploaded to the cloud: {location}")
