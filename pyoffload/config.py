"""Configuration management for pyoffload.

Settings are read from environment variables first and then from
``~/.config/pyoffload/config`` (simple ``KEY=value`` lines).
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import OffloadConfigError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "eu-central-1"
DEFAULT_PREFIX = "uploads/"
DEFAULT_TIMEOUT = 30.0

REQUIRED_SETTINGS = {
    "OFFLOAD_ACCESS_KEY": "Access Key",
    "OFFLOAD_SECRET_KEY": "Secret Key",
    "OFFLOAD_BUCKET": "Bucket",
    "OFFLOAD_ENDPOINT": "Endpoint",
}

KNOWN_SETTINGS = (
    *REQUIRED_SETTINGS,
    "OFFLOAD_REGION",
    "OFFLOAD_CDN_URL",
    "OFFLOAD_PREFIX",
    "OFFLOAD_UPLOADS_DIR",
    "OFFLOAD_MANIFEST",
    "OFFLOAD_TIMEOUT",
)


class Config:
    """Storage and library settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pyoffload
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pyoffload"
        self.config_dir = config_dir
        self.config_file = config_dir / "config"
        self._file_values: Optional[dict[str, str]] = None

    def _load_file(self) -> dict[str, str]:
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        if self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#") or "=" not in line:
                            continue
                        key, value = line.split("=", 1)
                        values[key.strip()] = value.strip()
            except OSError as e:
                logger.warning(f"Failed to read config file {self.config_file}: {e}")
        self._file_values = values
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a setting, preferring the environment over the config file."""
        value = os.environ.get(key)
        if value:
            return value
        value = self._load_file().get(key)
        if value:
            return value
        return default

    @property
    def access_key(self) -> Optional[str]:
        return self.get("OFFLOAD_ACCESS_KEY")

    @property
    def secret_key(self) -> Optional[str]:
        return self.get("OFFLOAD_SECRET_KEY")

    @property
    def bucket(self) -> Optional[str]:
        return self.get("OFFLOAD_BUCKET")

    @property
    def endpoint(self) -> Optional[str]:
        return self.get("OFFLOAD_ENDPOINT")

    @property
    def region(self) -> str:
        return self.get("OFFLOAD_REGION", DEFAULT_REGION) or DEFAULT_REGION

    @property
    def cdn_url(self) -> Optional[str]:
        return self.get("OFFLOAD_CDN_URL")

    @property
    def prefix(self) -> str:
        return self.get("OFFLOAD_PREFIX", DEFAULT_PREFIX) or DEFAULT_PREFIX

    @property
    def uploads_dir(self) -> Optional[Path]:
        value = self.get("OFFLOAD_UPLOADS_DIR")
        return Path(value) if value else None

    @property
    def manifest(self) -> Optional[Path]:
        value = self.get("OFFLOAD_MANIFEST")
        return Path(value) if value else None

    @property
    def timeout(self) -> float:
        value = self.get("OFFLOAD_TIMEOUT")
        if not value:
            return DEFAULT_TIMEOUT
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Invalid OFFLOAD_TIMEOUT {value!r}, using default")
            return DEFAULT_TIMEOUT

    def missing_settings(self) -> list[str]:
        """Return the names of required settings that are unset or empty."""
        return [key for key in REQUIRED_SETTINGS if not self.get(key)]

    def is_configured(self) -> bool:
        """Check if all required storage settings are available."""
        return not self.missing_settings()

    def require(self) -> None:
        """Raise OffloadConfigError if any required setting is missing."""
        missing = self.missing_settings()
        if missing:
            raise OffloadConfigError(
                "Storage not configured. Missing: "
                + ", ".join(missing)
                + ". Set them as environment variables or run 'pyoffload init'."
            )

    def get_config_path(self) -> Path:
        """Get the path to the config file."""
        return self.config_file

    def save(self, **values: Optional[str]) -> None:
        """Save settings to the config file, merging with existing ones.

        Args:
            **values: Setting names (e.g. OFFLOAD_BUCKET) mapped to values.
                None values are ignored.
        """
        current = dict(self._load_file())
        for key, value in values.items():
            if key not in KNOWN_SETTINGS:
                raise ValueError(f"Unknown setting: {key}")
            if value is not None:
                current[key] = value

        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            for key in KNOWN_SETTINGS:
                if key in current:
                    f.write(f"{key}={current[key]}\n")
        # Holds credentials
        self.config_file.chmod(0o600)
        self._file_values = current
        logger.debug(f"Saved {len(current)} setting(s) to {self.config_file}")


config = Config()
