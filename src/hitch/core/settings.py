"""
Centralized settings for hitch.

Manifesto:
    Boot behaviour (where the application root is, whether containers are
    rebuilt per request, how strict gateway validation is) must come from
    one validated place, overridable through ``HITCH_*`` environment
    variables and ``.env`` files, so the same code runs in development and
    production without edits.

Gateway definitions are *not* settings: they are declared in code through
:meth:`hitch.framework.lifecycle.Lifecycle.configure` (or inferred from
another ORM), because they usually carry secrets read from elsewhere.

Tags:
    hitch, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HitchSettings(BaseSettings):
    """Hitch configuration.

    All fields can be set via ``HITCH_*`` environment variables (e.g.
    ``HITCH_ENVIRONMENT=production``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="HITCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    root: Path = Field(default_factory=Path.cwd, description="Application root directory")
    environment: str = Field(default="development")
    app: str = Field(default="", description="'module:attr' path of the Lifecycle used by the CLI")

    # ── Lifecycle ────────────────────────────────────────────────
    reload_per_request: bool | None = Field(
        default=None,
        description="Rebuild the container before every request (default: development only)",
    )
    initializer: str = Field(default="config/initializers/hitch.py")
    strict_gateways: bool = Field(default=False)
    drain_timeout: float | None = Field(
        default=30.0,
        description="Seconds to wait for in-flight readers before disconnecting an old container",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── Derived properties ───────────────────────────────────────

    @property
    def should_reload_per_request(self) -> bool:
        if self.reload_per_request is not None:
            return self.reload_per_request
        return self.environment == "development"

    @property
    def initializer_path(self) -> Path:
        return self.root / self.initializer


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, HitchSettings] = {}


def get_settings(*, _force_reload: bool = False) -> HitchSettings:
    """Load, validate, and cache a :class:`HitchSettings` instance."""
    cache_key = "default"
    if not _force_reload and cache_key in _settings_cache:
        return _settings_cache[cache_key]

    settings = HitchSettings()
    _settings_cache[cache_key] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
