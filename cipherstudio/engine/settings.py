"""Engine configuration loaded from CIPHER_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CipherSettings(BaseSettings):
    """CipherStudio engine settings.

    All fields are read from environment variables with the ``CIPHER_`` prefix.
    For example, ``CIPHER_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    Every collaborator is optional.  Leaving the Firebase key unset makes the
    session bootstrapper fall back to a local identity; leaving the Gemini key
    unset makes every tool channel fail fast (simulation still resolves
    through the local heuristic); ``document_store="none"`` runs the
    workspace in local-only mode.
    """

    model_config = SettingsConfigDict(
        env_prefix="CIPHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Workspace -------------------------------------------------------------
    app_namespace: str = "default-app-id"
    """Namespace segment of every persisted project key."""

    default_language: str = "React.js"

    # -- Document store --------------------------------------------------------
    document_store: Literal["local", "s3", "memory", "none"] = "local"

    data_root: str = "./data"
    """Root directory for the local document store."""

    data_prefix: str | None = None
    """Optional namespace prefix inserted into all store paths / keys."""

    s3_endpoint: str | None = None
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_path_style: bool = False
    """Use path-style addressing (required by MinIO and some S3-compatible services)."""

    # -- Identity --------------------------------------------------------------
    firebase_api_key: SecretStr | None = None
    initial_auth_token: SecretStr | None = None
    """Externally supplied bootstrap token for token-based sign-in."""

    identity_base_url: str = "https://identitytoolkit.googleapis.com/v1"

    # -- Inference -------------------------------------------------------------
    gemini_api_key: SecretStr | None = None
    gemini_model: str = "gemini-2.5-flash-preview-09-2025"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    inference_timeout: float = 60.0

    # -- Timing (seconds) ------------------------------------------------------
    autosave_enabled: bool = True
    autosave_interval: float = 10.0
    debounce_delay: float = 1.5
    status_clear_delay: float = 3.0
    retry_attempts: int = 3
    retry_backoff_base: float = 2.0
    """Wait ``retry_backoff_base ** attempt`` seconds after failed attempt N."""

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 8000


def get_settings() -> CipherSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> CipherSettings:
    return CipherSettings()
