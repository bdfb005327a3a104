"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthorizationSettings(BaseSettings):
    """Authorization bridge settings.

    Environment variables:
        AUTHZ_BRIDGE_INSTANCE_NAME: Root path segment of every resource path (default: cdap)
        AUTHZ_BRIDGE_CACHE_MAX_ENTRIES: Decision cache size bound, 0 disables caching (default: 10000)
        AUTHZ_BRIDGE_CACHE_TTL_SECONDS: Decision cache expire-after-write duration (default: 300)
        AUTHZ_BRIDGE_ADMIN_GROUP_NAME: Group whose members bypass enforcement (optional)
        AUTHZ_BRIDGE_SUPERUSERS: Comma-separated users that bypass enforcement (optional)
        AUTHZ_BRIDGE_LOG_LEVEL: Minimum log level (default: INFO)
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHZ_BRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    instance_name: str = Field(
        default="cdap",
        description="Root path segment of every resource path",
        pattern=r"^[A-Za-z0-9_.\-]+$",
    )
    cache_max_entries: int = Field(
        default=10000,
        description="Decision cache size bound; 0 disables caching",
        ge=0,
    )
    cache_ttl_seconds: float = Field(
        default=300.0,
        description="Decision cache expire-after-write duration in seconds",
        gt=0,
    )
    admin_group_name: str | None = Field(
        default=None,
        description="Group whose members bypass enforcement",
    )
    superusers: str = Field(
        default="",
        description="Comma-separated user names that bypass enforcement",
    )
    log_level: str = Field(default="INFO", description="Minimum log level")

    @field_validator("admin_group_name")
    @classmethod
    def validate_admin_group_name(cls, value: str | None) -> str | None:
        """Exactly one admin group may be configured."""
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        if "," in value:
            raise ValueError(f"Provide exactly one admin group, found '{value}'")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept any standard logging level name, case-insensitively."""
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{value}'")
        return level

    @property
    def superuser_names(self) -> frozenset[str]:
        """Parsed set of superuser names."""
        return frozenset(name.strip() for name in self.superusers.split(",") if name.strip())


@lru_cache
def get_authorization_settings() -> AuthorizationSettings:
    """Get cached authorization settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return AuthorizationSettings()
