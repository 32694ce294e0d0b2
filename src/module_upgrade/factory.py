"""Profile resolution and collaborator factory.

Resolves the active database profile from db.toml and builds the
collaborators a migration run needs: the schema introspector and the
database client that applies statements.

Profile priority:
1. Explicit ``profile_name`` argument (``--profile``)
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ``ProfileNotFoundError``
"""

import os
from urllib.parse import quote

from module_upgrade.adapters.base import DatabaseClient
from module_upgrade.adapters.postgres import AsyncPostgresAdapter
from module_upgrade.config.loader import load_db_config
from module_upgrade.config.models import DatabaseConfig, DatabaseProfile
from module_upgrade.schema.introspector import SchemaIntrospector


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(profile_name: str | None = None, env_prefix: str = "") -> str:
    """Get active profile name from the argument or environment.

    Args:
        profile_name: Explicit profile name (wins when given).
        env_prefix: Prefix for the env var (``"APP_"`` reads ``APP_DB_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    if profile_name:
        return profile_name

    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_var}=<name> or pass --profile <name>."
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config: DatabaseConfig | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured or the name is unknown
        FileNotFoundError: If db.toml is missing and no config was given
    """
    name = get_active_profile_name(profile_name, env_prefix=env_prefix)
    if config is None:
        config = load_db_config()

    if name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in db.toml.\n"
            f"Available profiles: {available}"
        )

    return name, config.profiles[name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> resolve_url(DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss"))
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def get_introspector(profile: DatabaseProfile, config: DatabaseConfig) -> SchemaIntrospector:
    """Build the schema introspector for a profile."""
    excluded = config.migration.excluded_tables
    return SchemaIntrospector(
        resolve_url(profile),
        schema_name=config.migration.schema_name,
        excluded_tables=set(excluded) if excluded is not None else None,
    )


def get_adapter(profile: DatabaseProfile) -> DatabaseClient:
    """Build the database client used to apply statements.

    The engine connects lazily, on the first executed statement.

    Example:
        adapter = get_adapter(profile)
        await adapter.execute("CREATE TABLE IF NOT EXISTS foo (id_foo INTEGER)")
        await adapter.close()
    """
    return AsyncPostgresAdapter(resolve_url(profile))
