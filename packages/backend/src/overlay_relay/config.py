"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with OVERLAY_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: `settings` below is only the default. OverlayServer and create_app()
both accept an explicit Settings instance, which is what tests and
embedding host applications use.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All relay configuration. Set via OVERLAY_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "127.0.0.1"  # overlays run on the streaming machine
    port: int = 23399

    # Delivery
    send_timeout_seconds: float = 2.0
    close_timeout_seconds: float = 1.0
    shutdown_timeout_seconds: float = 5.0

    # Producer defaults
    wire_format: Literal["named", "generic"] = "named"
    message_duration_ms: int = 5000
    notification_duration_ms: int = 9000
    default_user_color: str = "#a970ff"

    # Overlay assets (HTML/CSS/JS). Served from "/" when set.
    static_dir: Optional[Path] = None

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_prefix": "OVERLAY_"}

    @model_validator(mode="after")
    def validate_settings(self):
        """Reject values that would only fail later, at request time."""
        if self.static_dir is not None and not self.static_dir.is_dir():
            raise ValueError(
                f"OVERLAY_STATIC_DIR does not exist or is not a directory: {self.static_dir}"
            )
        if self.send_timeout_seconds <= 0:
            raise ValueError("OVERLAY_SEND_TIMEOUT_SECONDS must be positive")
        return self


# Default instance, used by components built without explicit settings
settings = Settings()
