"""
Checksum utilities for backup artifacts
"""

import hashlib
from pathlib import Path


def generate_checksum(file_path: Path, algorithm: str = 'sha256') -> str:
    """Generate file checksum"""
    hash_func = getattr(hashlib, algorithm)()
    
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(4096), b""):
            hash_func.update(chunk)
    
    return hash_func.hexdigest()
