"""Configuration handling for pyonedrive.

Values are resolved in this order: environment variables, then the
config file at ``~/.config/pyonedrive/config``.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://graph.microsoft.com/v1.0"

TOKEN_ENV_VAR = "ONEDRIVE_ACCESS_TOKEN"
API_URL_ENV_VAR = "ONEDRIVE_API_URL"


class Config:
    """Reads and stores pyonedrive settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pyonedrive
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pyonedrive"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        """Parse KEY=VALUE lines from the config file."""
        path = self.get_config_path()
        values: dict[str, str] = {}
        if not path.exists():
            return values

        try:
            with open(path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    values[key.strip()] = value.strip().strip('"').strip("'")
        except OSError as e:
            logger.warning(f"Could not read config file {path}: {e}")
        return values

    @property
    def access_token(self) -> Optional[str]:
        """Graph access token, or None if not configured."""
        token = os.environ.get(TOKEN_ENV_VAR)
        if token:
            return token
        return self._read_file().get(TOKEN_ENV_VAR) or None

    @property
    def api_url(self) -> str:
        """Base URL of the Graph API."""
        url = os.environ.get(API_URL_ENV_VAR)
        if url:
            return url.rstrip("/")
        return self._read_file().get(API_URL_ENV_VAR, DEFAULT_API_URL).rstrip("/")

    def save_access_token(self, access_token: str) -> Path:
        """Store the access token in the config file.

        Other keys already present in the file are preserved.

        Args:
            access_token: Token to store

        Returns:
            Path of the written config file
        """
        values = self._read_file()
        values[TOKEN_ENV_VAR] = access_token

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        with open(path, "w", encoding="utf-8") as f:
            for key, value in values.items():
                f.write(f"{key}={value}\n")
        # Token is a credential
        path.chmod(0o600)
        logger.debug(f"Saved access token to {path}")
        return path


config = Config()
