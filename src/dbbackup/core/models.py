"""
Data models for the database backup pipeline
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import UnsupportedDatabaseKind


class ExportStrategy(str, Enum):
    RELATIONAL_DUMP = "relational-dump"
    RELATIONAL_CATALOG = "relational-catalog"
    DOCUMENT = "document"


class DatabaseKind(str, Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MONGODB = "mongodb"

    @classmethod
    def resolve(cls, value) -> "DatabaseKind":
        """Map a raw ``db`` value onto a supported kind"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedDatabaseKind(value) from None

    @property
    def strategy(self) -> ExportStrategy:
        return _KIND_STRATEGIES[self]

    @property
    def extension(self) -> str:
        """Artifact extension of the raw export"""
        if self.strategy == ExportStrategy.DOCUMENT:
            return "json"
        return "sql"

    @property
    def default_port(self) -> int:
        return _DEFAULT_PORTS[self]


_KIND_STRATEGIES = {
    DatabaseKind.MYSQL: ExportStrategy.RELATIONAL_DUMP,
    DatabaseKind.POSTGRES: ExportStrategy.RELATIONAL_CATALOG,
    DatabaseKind.MONGODB: ExportStrategy.DOCUMENT,
}

_DEFAULT_PORTS = {
    DatabaseKind.MYSQL: 3306,
    DatabaseKind.POSTGRES: 5432,
    DatabaseKind.MONGODB: 27017,
}


class BackupType(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"
    DIFFERENTIAL = "differential"


class BackupStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    EXPORTING = "exporting"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


class ArtifactStage(str, Enum):
    RAW_EXPORT = "raw-export"
    COMPRESSED = "compressed"


class ConnectionParams(BaseModel):
    """Connection parameters handed to a database driver"""
    host: str = Field("localhost", description="Database host")
    port: int = Field(..., description="Database port")
    user: Optional[str] = Field(None, description="Database username")
    password: Optional[str] = Field(None, description="Database password")
    dbname: str = Field(..., description="Database name")

    def driver_options(self) -> Dict[str, Any]:
        """Keyword arguments shared by the database drivers"""
        return {
            "host": self.host,
            "user": self.user,
            "password": self.password,
            "database": self.dbname,
            "port": self.port,
        }


class BackupRequest(BaseModel):
    """Validated input to a single backup run"""
    model_config = ConfigDict(frozen=True)

    db: str = Field(..., description="Database type (mysql, postgres, mongodb)")
    host: str = Field("localhost", description="Database host")
    port: Optional[int] = Field(None, description="Database port")
    user: Optional[str] = Field(None, description="Database username")
    password: Optional[str] = Field(None, description="Database password")
    dbname: str = Field(..., description="Database name to back up")
    type: str = Field(BackupType.FULL.value, description="Backup type label (advisory)")
    compress: bool = Field(False, description="Compress the backup file")
    cloud: bool = Field(False, description="Upload the backup to cloud storage")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if v is not None and not 1 <= v <= 65535:
            raise ValueError('Port must be between 1 and 65535')
        return v

    def connection_params(self, kind: DatabaseKind) -> ConnectionParams:
        """Build driver parameters, falling back to the kind's default port"""
        return ConnectionParams(
            host=self.host,
            port=self.port or kind.default_port,
            user=self.user,
            password=self.password,
            dbname=self.dbname,
        )


class BackupArtifact(BaseModel):
    """A file produced by the export or compression stage"""
    model_config = ConfigDict(frozen=True)

    kind: DatabaseKind = Field(..., description="Database kind the artifact came from")
    path: Path = Field(..., description="Local file path")
    stage: ArtifactStage = Field(..., description="Pipeline stage that produced it")

    @property
    def name(self) -> str:
        return self.path.name


class BackupResult(BaseModel):
    """Terminal outcome of one backup run"""
    db: str = Field(..., description="Requested database type")
    dbname: str = Field(..., description="Database name")
    status: BackupStatus = Field(BackupStatus.IDLE, description="Pipeline state")
    start_time: datetime = Field(default_factory=datetime.now, description="Start time")
    end_time: Optional[datetime] = Field(None, description="End time")
    artifacts: List[BackupArtifact] = Field(default_factory=list, description="Produced artifacts")
    size_bytes: int = Field(0, description="Size of the final artifact in bytes")
    checksum: Optional[str] = Field(None, description="SHA-256 of the final artifact")
    error_message: Optional[str] = Field(None, description="Error message if failed")
    error_type: Optional[str] = Field(None, description="Error class name if failed")

    @property
    def succeeded(self) -> bool:
        return self.status == BackupStatus.COMPLETED

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds"""
        if self.end_time and self.start_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def _artifact(self, stage: ArtifactStage) -> Optional[BackupArtifact]:
        for artifact in self.artifacts:
            if artifact.stage == stage:
                return artifact
        return None

    @property
    def raw_artifact(self) -> Optional[BackupArtifact]:
        return self._artifact(ArtifactStage.RAW_EXPORT)

    @property
    def compressed_artifact(self) -> Optional[BackupArtifact]:
        return self._artifact(ArtifactStage.COMPRESSED)

    @property
    def final_artifact(self) -> Optional[BackupArtifact]:
        """The artifact that is uploaded and reported"""
        return self.compressed_artifact or self.raw_artifact
