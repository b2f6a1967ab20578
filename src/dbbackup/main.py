#!/usr/bin/env python3
"""
Database Backup Tool - Main Entry Point

Backs up a MySQL, PostgreSQL or MongoDB database to a local file, with
optional compression, upload and desktop notifications.
"""

import argparse
import asyncio
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import __version__
from .core.config import ConfigManager
from .core.models import BackupRequest, DatabaseKind
from .core.backup import BackupManager
from .core.notifications import Notifier
from .core.upload import create_uploader
from .core.exceptions import UnsupportedDatabaseKind
from .utils.logger import setup_logging, get_logger
from .utils.validation import validate_backup_request

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbbackup",
        description="Database Backup Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s backup -d mysql -u root -p secret -n shop -c
  %(prog)s backup -d mongodb -h db.local -P 27017 -n shop --cloud
  %(prog)s backup -d postgres -n analytics --output-dir /srv/backups
        """
    )
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command")

    # -h is the database host, so help is --help only
    backup = subparsers.add_parser("backup", help="Backup the database", add_help=False)
    backup.add_argument("--help", action="help", help="Show this help message and exit")
    backup.add_argument("-d", "--db", help="Database type (mysql, postgres, mongodb)")
    backup.add_argument("-u", "--user", help="Username for the database")
    backup.add_argument("-p", "--password", help="Password for the database")
    backup.add_argument("-h", "--host", help="Database host")
    backup.add_argument("-P", "--port", type=int, help="Database port")
    backup.add_argument("-n", "--dbname", help="Database name")
    backup.add_argument("-t", "--type", help="Backup type (full, incremental, differential)")
    backup.add_argument("-c", "--compress", action="store_true", default=None,
                        help="Compress the backup file")
    backup.add_argument("--cloud", action="store_true", default=None,
                        help="Upload the backup to cloud storage")
    backup.add_argument("-o", "--output-dir", type=Path, help="Directory for backup files")
    backup.add_argument("--config", type=Path, help="Configuration file path")
    backup.add_argument("--no-notify", action="store_true", help="Disable desktop notifications")
    backup.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level (default: INFO)")
    backup.add_argument("--log-file", type=Path, help="Log file path")

    return parser


def build_request(args: argparse.Namespace, config_manager: ConfigManager) -> BackupRequest:
    """Merge command line options over configured defaults"""
    values: Dict[str, Any] = {}
    values.update(config_manager.get_database_defaults())
    values.update(config_manager.get_backup_defaults())

    for field in ("db", "user", "password", "host", "port", "dbname", "type", "compress", "cloud"):
        value = getattr(args, field, None)
        if value is not None:
            values[field] = value

    values = {key: value for key, value in values.items() if value is not None}
    return BackupRequest(**values)


def check_dependencies(request: BackupRequest) -> List[str]:
    """Report client tools required by the requested export"""
    missing = []
    try:
        kind = DatabaseKind.resolve(request.db)
    except UnsupportedDatabaseKind:
        return missing

    if kind == DatabaseKind.MYSQL and not shutil.which("mysqldump"):
        missing.append("mysqldump")
    return missing


async def run_backup(manager: BackupManager, request: BackupRequest):
    try:
        return await manager.run_backup(request)
    finally:
        await manager.notifier.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "backup":
        parser.print_help()
        return EXIT_USAGE

    config_manager = ConfigManager(args.config)

    setup_logging(
        log_level=args.log_level or config_manager.get_log_level(),
        log_file=args.log_file or config_manager.get_log_file()
    )
    logger = get_logger(__name__)

    try:
        request = build_request(args, config_manager)
    except ValidationError as e:
        logger.error(f"Invalid backup options: {e}")
        return EXIT_USAGE

    errors = validate_backup_request(request)
    if errors:
        for error in errors:
            logger.error(error)
        return EXIT_USAGE

    missing = check_dependencies(request)
    if missing:
        logger.error(f"Missing required client tools: {', '.join(missing)}")
        return EXIT_FAILED

    try:
        upload_config = config_manager.get_upload_config()
        uploader = create_uploader(
            upload_config.get("provider"),
            target_dir=upload_config.get("target_dir")
        )
    except ValueError as e:
        logger.error(f"Invalid upload configuration: {e}")
        return EXIT_USAGE

    notifier = Notifier(
        enabled=config_manager.notifications_enabled() and not args.no_notify,
        logger=logger
    )
    manager = BackupManager(
        backup_dir=args.output_dir or config_manager.get_backup_dir(),
        notifier=notifier,
        uploader=uploader,
        logger=logger
    )

    try:
        result = asyncio.run(run_backup(manager, request))
    except KeyboardInterrupt:
        logger.warning("Backup interrupted by user")
        return EXIT_FAILED

    if not result.succeeded:
        return EXIT_FAILED

    for artifact in result.artifacts:
        logger.info(f"{artifact.stage.value}: {artifact.path}")
    if result.duration is not None:
        logger.info(
            f"Backup of {result.dbname} finished in {result.duration:.2f}s, "
            f"{result.size_bytes} bytes, sha256 {result.checksum}"
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
