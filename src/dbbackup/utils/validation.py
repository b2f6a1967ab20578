"""
Validation utilities for the database backup tool
"""

import re
from typing import List

from ..core.models import BackupRequest, BackupType, DatabaseKind
from ..core.exceptions import UnsupportedDatabaseKind


def validate_backup_request(request: BackupRequest) -> List[str]:
    """Validate a backup request before it reaches the pipeline.

    The database kind itself is left to the orchestrator, which rejects
    unsupported kinds before connecting.
    """
    errors = []
    
    # Host validation
    if not request.host or not request.host.strip():
        errors.append("Database host is required")
    elif len(request.host) > 253:
        errors.append("Database host is too long (max 253 characters)")
    
    # Database name validation, it also names the artifacts
    if not request.dbname or not request.dbname.strip():
        errors.append("Database name is required")
    elif request.dbname.startswith("-"):
        errors.append("Database name must not start with '-'")
    elif re.search(r'[<>:"/\\|?*\x00-\x1f]', request.dbname):
        errors.append("Database name contains characters not allowed in file names")
    elif len(request.dbname) > 64:
        errors.append("Database name is too long (max 64 characters)")
    
    # Relational servers always authenticate
    try:
        kind = DatabaseKind.resolve(request.db)
    except UnsupportedDatabaseKind:
        kind = None
    if kind in (DatabaseKind.MYSQL, DatabaseKind.POSTGRES) and not request.user:
        errors.append("Database username is required")
    
    return errors


def is_advisory_backup_type(backup_type: str) -> bool:
    """True when the label asks for something other than a full export"""
    return (backup_type or BackupType.FULL.value).lower() != BackupType.FULL.value
