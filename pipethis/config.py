"""Runtime configuration — env-driven, overridable from the command line.

Centralized settings using pydantic-settings.  Reads from a .env file and
PIPETHIS_* environment variables, and falls back to the conventional
process variables (``SHELL``, ``EDITOR``, ``HOME``, ``GNUPGHOME``) where a
setting has a well-known Unix equivalent.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KEYBASE_AUTOCOMPLETE_URL = "https://keybase.io/_/api/1.0/user/autocomplete.json"
KEYBASE_KEY_URL = "https://keybase.io/{username}/key.asc"


class PipethisConfig(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PIPETHIS_LOG_LEVEL=DEBUG
        export PIPETHIS_LOOKUP_WITH=local
        export GNUPGHOME=/srv/keys

    Or via .env file::

        PIPETHIS_HTTP_TIMEOUT=10
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PIPETHIS_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Execution
    target: str = Field(
        "/bin/sh", validation_alias=AliasChoices("PIPETHIS_TARGET", "SHELL")
    )
    editor: str = Field(
        "vi", validation_alias=AliasChoices("PIPETHIS_EDITOR", "EDITOR")
    )

    # Key lookup
    lookup_with: str = "keybase"
    home: Path = Field(
        default_factory=Path.home,
        validation_alias=AliasChoices("PIPETHIS_HOME", "HOME"),
    )
    gnupg_home: Path | None = Field(
        None, validation_alias=AliasChoices("PIPETHIS_GNUPG_HOME", "GNUPGHOME")
    )
    keybase_autocomplete_url: str = KEYBASE_AUTOCOMPLETE_URL
    keybase_key_url: str = KEYBASE_KEY_URL

    # Network
    http_timeout: float = 30.0

    @field_validator("gnupg_home", mode="before")
    @classmethod
    def _blank_gnupg_home(cls, value: object) -> object:
        # an exported but empty GNUPGHOME means "not set"
        if isinstance(value, str) and not value.strip():
            return None
        return value

