"""
Export strategies for the backup pipeline

Three strategies, selected by database kind:
- relational-dump: full schema and data through the mysqldump client
- relational-catalog: table catalog of the public schema (metadata only)
- document: every collection of a Mongo database as one JSON document
"""

import asyncio
import csv
import io
import json
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List
from bson import json_util

from .models import ArtifactStage, BackupArtifact, DatabaseKind, ExportStrategy
from .database import ConnectionHandle
from .exceptions import ExportError
from ..utils.logger import get_logger

logger = get_logger(__name__)

CATALOG_QUERY = "SELECT * FROM pg_catalog.pg_tables WHERE schemaname = 'public'"


def backup_file_name(dbname: str, extension: str) -> str:
    """Deterministic artifact name, repeated runs overwrite"""
    return f"{dbname}-backup.{extension}"


def backup_file_path(kind: DatabaseKind, dbname: str, destination_dir: Path) -> Path:
    return Path(destination_dir) / backup_file_name(dbname, kind.extension)


async def export_mysql_dump(handle: ConnectionHandle, dbname: str, output_file: Path):
    """Dump schema and data with the mysqldump client"""
    params = handle.params
    # mysqldump would parse it as an option
    if dbname.startswith("-"):
        raise ExportError(f"Refusing to dump database name starting with '-': {dbname}")

    cmd = [
        "mysqldump",
        f"--host={params.host}",
        f"--port={params.port}",
        f"--result-file={output_file}",
    ]
    if params.user:
        cmd.append(f"--user={params.user}")
    cmd.append(dbname)

    env = dict(os.environ)
    if params.password:
        env["MYSQL_PWD"] = params.password

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except FileNotFoundError as e:
        raise ExportError(f"mysqldump not found: {e}") from e

    _, stderr = await process.communicate()

    if process.returncode != 0:
        raise ExportError(f"mysqldump failed: {stderr.decode(errors='replace').strip()}")


def format_catalog_rows(rows: List[Any]) -> str:
    """Render catalog records as newline-joined CSV lines with a header"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if rows:
        writer.writerow(list(rows[0].keys()))
    for row in rows:
        writer.writerow(["" if value is None else value for value in row.values()])
    return buffer.getvalue().rstrip("\n")


async def export_postgres_catalog(handle: ConnectionHandle, dbname: str, output_file: Path):
    """Export the public-schema table catalog.

    This writes table metadata only, never table contents.
    """
    logger.warning(
        f"PostgreSQL export of {dbname} contains the table catalog of the public "
        f"schema, not table data"
    )
    try:
        rows = await handle.client.fetch(CATALOG_QUERY)
    except Exception as e:
        raise ExportError(f"Catalog query failed: {e}") from e

    content = format_catalog_rows(rows)
    try:
        with open(output_file, "w", newline="") as f:
            f.write(content)
    except OSError as e:
        raise ExportError(f"Failed to write {output_file}: {e}") from e


async def collect_collections(database) -> List[Dict[str, Any]]:
    """Fetch every document of every collection into memory"""
    data = []
    names = sorted(await database.list_collection_names())
    for name in names:
        docs = await database[name].find().to_list(None)
        logger.info(f"Exported collection {name} ({len(docs)} documents)")
        data.append({"collection": name, "docs": docs})
    return data


async def export_mongodb_documents(handle: ConnectionHandle, dbname: str, output_file: Path):
    """Export all collections as one pretty-printed JSON array"""
    try:
        data = await collect_collections(handle.client[dbname])
    except Exception as e:
        raise ExportError(f"Failed to read collections of {dbname}: {e}") from e

    try:
        with open(output_file, "w") as f:
            f.write(json.dumps(data, indent=2, default=json_util.default))
    except (OSError, TypeError, ValueError) as e:
        raise ExportError(f"Failed to write {output_file}: {e}") from e


ExportFunction = Callable[[ConnectionHandle, str, Path], Awaitable[None]]

EXPORT_STRATEGIES: Dict[ExportStrategy, ExportFunction] = {
    ExportStrategy.RELATIONAL_DUMP: export_mysql_dump,
    ExportStrategy.RELATIONAL_CATALOG: export_postgres_catalog,
    ExportStrategy.DOCUMENT: export_mongodb_documents,
}


async def export_backup(
    kind: DatabaseKind,
    handle: ConnectionHandle,
    dbname: str,
    destination_dir: Path
) -> BackupArtifact:
    """Produce the raw export artifact for one database"""
    kind = DatabaseKind.resolve(kind)
    output_file = backup_file_path(kind, dbname, destination_dir)

    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportError(f"Cannot create backup directory {output_file.parent}: {e}") from e

    await EXPORT_STRATEGIES[kind.strategy](handle, dbname, output_file)

    if not output_file.exists():
        raise ExportError(f"Export finished without producing {output_file}")

    logger.info(f"{kind.value} backup complete. File saved as: {output_file}")
    return BackupArtifact(kind=kind, path=output_file, stage=ArtifactStage.RAW_EXPORT)
