"""Pydantic models for database and migration configuration."""

from pydantic import BaseModel, Field


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class MigrationSettings(BaseModel):
    """The ``[migration]`` section of db.toml."""

    schema_name: str = "public"
    table_prefix: str = ""
    definitions_dir: str = "definitions"
    excluded_tables: list[str] | None = None


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    migration: MigrationSettings = Field(default_factory=MigrationSettings)
