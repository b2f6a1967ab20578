"""
Configuration management for the database backup tool
"""

import json
import os
from pathlib import Path
from typing import Dict, Optional, Any
from dotenv import find_dotenv, load_dotenv

from ..utils.logger import get_logger

logger = get_logger(__name__)


class ConfigManager:
    """Configuration management with environment variable support"""

    def __init__(self, config_file: Optional[Path] = None, load_env_file: bool = True):
        self.config_file = Path(config_file) if config_file else Path.home() / ".dbbackup_config.json"

        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))

        self.config = self._get_default_config()

        # Load from file and environment
        self._load_from_file()
        self._load_from_environment()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "app": {
                "log_level": "INFO",
                "log_file": None,
                "backup_dir": str(Path.home() / "db_backups"),
            },
            "database": {
                "db": None,
                "host": "localhost",
                "port": None,
                "user": None,
                "password": None,
                "dbname": None,
            },
            "backup": {
                "type": "full",
                "compress": False,
                "cloud": False,
            },
            "upload": {
                "provider": "log",
                "target_dir": None,
            },
            "notifications": {
                "enabled": True,
            },
        }

    def _load_from_file(self):
        """Load configuration from file"""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    file_config = json.load(f)
                    self._merge_config(self.config, file_config)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Error loading config file {self.config_file}: {e}")

    def _load_from_environment(self):
        """Load configuration from environment variables"""
        env_mappings = {
            # App settings
            "BACKUP_DIR": ("app", "backup_dir"),
            "BACKUP_LOG_LEVEL": ("app", "log_level"),
            "BACKUP_LOG_FILE": ("app", "log_file"),

            # Source database
            "DB_TYPE": ("database", "db"),
            "DB_HOST": ("database", "host"),
            "DB_PORT": ("database", "port"),
            "DB_USER": ("database", "user"),
            "DB_PASSWORD": ("database", "password"),
            "DB_NAME": ("database", "dbname"),

            # Backup settings
            "BACKUP_TYPE": ("backup", "type"),
            "BACKUP_COMPRESS": ("backup", "compress"),
            "BACKUP_CLOUD": ("backup", "cloud"),

            # Upload settings
            "BACKUP_CLOUD_PROVIDER": ("upload", "provider"),
            "BACKUP_CLOUD_TARGET_DIR": ("upload", "target_dir"),

            "BACKUP_NOTIFICATIONS": ("notifications", "enabled"),
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.environ.get(env_var)
            if env_value is not None:
                self._set_nested_value(self.config, config_path, env_value)

    def _merge_config(self, base: Dict, override: Dict):
        """Recursively merge configuration dictionaries"""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _set_nested_value(self, config: Dict, path: tuple, value: str):
        """Set nested configuration value"""
        current = config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        final_key = path[-1]

        # Type conversion
        if final_key in ["port"]:
            try:
                current[final_key] = int(value)
            except ValueError:
                logger.warning(f"Ignoring non-integer value for {'.'.join(path)}: {value}")
        elif final_key in ["compress", "cloud", "enabled"]:
            current[final_key] = value.lower() in ('true', 'yes', '1', 'on')
        else:
            current[final_key] = value

    def get_database_defaults(self) -> Dict[str, Any]:
        """Connection fields for a backup request"""
        return dict(self.config["database"])

    def get_backup_defaults(self) -> Dict[str, Any]:
        """Backup option fields for a backup request"""
        return dict(self.config["backup"])

    def get_backup_dir(self) -> Path:
        """Get backup directory"""
        return Path(self.config["app"]["backup_dir"]).expanduser()

    def get_log_level(self) -> str:
        return self.config["app"]["log_level"]

    def get_log_file(self) -> Optional[Path]:
        log_file = self.config["app"].get("log_file")
        return Path(log_file).expanduser() if log_file else None

    def get_upload_config(self) -> Dict[str, Any]:
        """Get upload configuration"""
        return self.config["upload"]

    def notifications_enabled(self) -> bool:
        return bool(self.config["notifications"]["enabled"])

    def get_config_value(self, path: str, default: Any = None) -> Any:
        """Get configuration value"""
        keys = path.split('.')
        current = self.config

        try:
            for key in keys:
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default
