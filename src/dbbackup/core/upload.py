"""
Uploaders for backup artifacts

Supports:
- LogUploader: records the upload intent only, no transport
- LocalDirectoryUploader: copies artifacts into a directory such as a mounted share

Further remote stores plug in through ``register_uploader``.
"""

import asyncio
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Type

from .exceptions import UploadError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Uploader(ABC):
    """Transmits a local artifact to a remote store"""

    name = "base"

    @classmethod
    def from_options(cls, **options) -> "Uploader":
        return cls()

    @abstractmethod
    async def upload(self, local_path: Path) -> str:
        """
        Upload one artifact.

        Args:
            local_path: Artifact on the local filesystem

        Returns:
            Location of the artifact in the remote store

        Raises:
            UploadError: If the transfer fails
        """


class LogUploader(Uploader):
    """Placeholder store that only logs what would be uploaded"""

    name = "log"

    async def upload(self, local_path: Path) -> str:
        logger.info("Uploading to cloud storage")
        logger.info(f"No cloud transport configured, {local_path} stays local")
        return str(local_path)


class LocalDirectoryUploader(Uploader):
    """Copies artifacts into a target directory"""

    name = "local"

    def __init__(self, target_dir=None):
        if not target_dir:
            raise ValueError("LocalDirectoryUploader requires a target_dir")
        self.target_dir = Path(target_dir).expanduser()

    @classmethod
    def from_options(cls, **options) -> "Uploader":
        return cls(options.get("target_dir"))

    def _copy(self, local_path: Path) -> Path:
        source = Path(local_path)
        if not source.is_file():
            raise UploadError(f"File to upload does not exist: {source}")

        destination = self.target_dir / source.name
        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise UploadError(f"Failed to copy {source} to {self.target_dir}: {e}") from e
        return destination

    async def upload(self, local_path: Path) -> str:
        destination = await asyncio.to_thread(self._copy, local_path)
        logger.info(f"Backup uploaded to: {destination}")
        return str(destination)


UPLOADERS: Dict[str, Type[Uploader]] = {
    LogUploader.name: LogUploader,
    LocalDirectoryUploader.name: LocalDirectoryUploader,
}


def register_uploader(name: str, uploader_cls: Type[Uploader]):
    """Make a remote-store implementation available by provider name"""
    UPLOADERS[name] = uploader_cls


def create_uploader(provider: str = "log", **options) -> Uploader:
    """
    Factory function to create the uploader for a provider.

    Raises:
        ValueError: If the provider is unknown
    """
    provider = (provider or LogUploader.name).lower()
    if provider not in UPLOADERS:
        raise ValueError(
            f"Invalid upload provider: {provider}. "
            f"Valid options: {sorted(UPLOADERS)}"
        )
    return UPLOADERS[provider].from_options(**options)
