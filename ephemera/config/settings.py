"""
Application Settings

Service-level configuration read from the environment.
"""

import os
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class AppConfig:
    """Application configuration."""

    RECLAMATION_MODES = ("thread", "celery", "off")

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"

        # Uploads
        self.max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", 50))
        self.download_base_url = os.getenv("DOWNLOAD_BASE_URL", "")
        self.require_auth_for_upload = _env_bool("REQUIRE_AUTH_FOR_UPLOAD", False)
        self.identity_header = os.getenv("IDENTITY_HEADER", "X-User-Id")

        # Reclamation
        self.reclamation_interval_seconds = float(os.getenv("RECLAMATION_INTERVAL_SECONDS", 60))
        self.reclamation_batch_size = int(os.getenv("RECLAMATION_BATCH_SIZE", 200))
        self.reclamation_mode = os.getenv("RECLAMATION_MODE", "thread").strip().lower()
        if self.reclamation_mode not in self.RECLAMATION_MODES:
            raise ValueError(
                f"RECLAMATION_MODE must be one of {', '.join(self.RECLAMATION_MODES)}, "
                f"got {self.reclamation_mode!r}"
            )

        # Celery is optional for the web process
        self.celery_enabled = _env_bool("CELERY_ENABLED", True)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def api_prefix(self) -> str:
        return f"/api/{self.api_version}"

    def files_prefix(self) -> str:
        return f"{self.api_prefix}/files"

    @classmethod
    def for_testing(cls, **overrides: Optional[object]) -> "AppConfig":
        """Build a config with reclamation and Celery off, then apply overrides."""
        config = cls.__new__(cls)
        config.api_version = "v1"
        config.flask_env = "testing"
        config.is_production = False
        config.max_upload_mb = 50
        config.download_base_url = ""
        config.require_auth_for_upload = False
        config.identity_header = "X-User-Id"
        config.reclamation_interval_seconds = 60.0
        config.reclamation_batch_size = 200
        config.reclamation_mode = "off"
        config.celery_enabled = False
        for name, value in overrides.items():
            if not hasattr(config, name):
                raise AttributeError(f"Unknown config option: {name}")
            setattr(config, name, value)
        return config
