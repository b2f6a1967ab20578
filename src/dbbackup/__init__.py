"""
dbbackup - Database Backup Tool
"""

__version__ = "1.0.0"
