# Core: Configuration
#
# Runtime settings are read from the environment. A ``.env`` file in the
# working directory is loaded first (python-dotenv) so developers can point
# the client at a local backend without exporting variables.
#
#   VAULTSYNC_API_URL            backend base URL (no trailing slash needed)
#   VAULTSYNC_TIMEOUT            per-request timeout in seconds
#   VAULTSYNC_AUTO_LOCK_SECONDS  inactivity before the session key is dropped
#   VAULTSYNC_KDF_ITERATIONS     PBKDF2 rounds; changing this breaks old records
#   VAULTSYNC_DATA_DIR           directory for the durable profile store
#   VAULTSYNC_LOG_DIR            directory for audit logs

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_SEC = 15.0
DEFAULT_AUTO_LOCK_SEC = 300  # 5 minutes of inactivity
DEFAULT_KDF_ITERATIONS = 600_000  # OWASP 2023 guidance for PBKDF2-SHA256
MIN_KDF_ITERATIONS = 100_000


@dataclass
class Settings:
    """Resolved client settings."""

    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SEC
    auto_lock_seconds: int = DEFAULT_AUTO_LOCK_SEC
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("audit_logs"))

    def __post_init__(self):
        self.api_url = self.api_url.rstrip("/")
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)
        if self.kdf_iterations < MIN_KDF_ITERATIONS:
            raise ValueError(
                f"kdf_iterations must be at least {MIN_KDF_ITERATIONS}, "
                f"got {self.kdf_iterations}"
            )
        if self.auto_lock_seconds < 0:
            raise ValueError("auto_lock_seconds cannot be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def profile_db_path(self) -> Path:
        return self.data_dir / "profile.db"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from environment variables (after loading .env)."""
        load_dotenv(dotenv_path=dotenv_path, override=False)

        return cls(
            api_url=os.getenv("VAULTSYNC_API_URL", DEFAULT_API_URL),
            timeout=float(os.getenv("VAULTSYNC_TIMEOUT", DEFAULT_TIMEOUT_SEC)),
            auto_lock_seconds=int(
                os.getenv("VAULTSYNC_AUTO_LOCK_SECONDS", DEFAULT_AUTO_LOCK_SEC)
            ),
            kdf_iterations=int(
                os.getenv("VAULTSYNC_KDF_ITERATIONS", DEFAULT_KDF_ITERATIONS)
            ),
            data_dir=Path(os.getenv("VAULTSYNC_DATA_DIR", "data")),
            log_dir=Path(os.getenv("VAULTSYNC_LOG_DIR", "audit_logs")),
        )


# ── Singleton ────────────────────────────────────────────────────────

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
        logger.debug("Loaded settings (api_url=%s)", _settings.api_url)
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace the singleton (for testing)."""
    global _settings
    _settings = settings
