"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from module_upgrade.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from module_upgrade.config.loader import load_db_config
from module_upgrade.config.models import DatabaseConfig, DatabaseProfile, MigrationSettings

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "MigrationSettings"]
