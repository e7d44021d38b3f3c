"""Configuration management for pydropsync.

The access token is looked up in the ``DROPBOX_ACCESS_TOKEN`` environment
variable first and then in ``~/.config/pydropsync/config``. Endpoint URLs
can be overridden through environment variables, which is mostly useful
for tests and API proxies.
"""

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.dropboxapi.com/2"
DEFAULT_CONTENT_URL = "https://content.dropboxapi.com/2"
DEFAULT_NOTIFY_URL = "https://notify.dropboxapi.com/2"

TOKEN_ENV_VAR = "DROPBOX_ACCESS_TOKEN"


class Config:
    """Resolves credentials and endpoints from the environment and config file."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file.
                Defaults to ~/.config/pydropsync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pydropsync"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        values: dict[str, str] = {}
        if not path.exists():
            return values

        try:
            for line in path.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                values[key.strip()] = value.strip().strip('"').strip("'")
        except OSError as e:
            logger.warning(f"Failed to read config file {path}: {e}")
        return values

    @property
    def api_key(self) -> Optional[str]:
        """Access token for the remote store."""
        return os.environ.get(TOKEN_ENV_VAR) or self._read_file().get(TOKEN_ENV_VAR)

    @property
    def api_url(self) -> str:
        return os.environ.get("DROPBOX_API_URL", DEFAULT_API_URL).rstrip("/")

    @property
    def content_url(self) -> str:
        return os.environ.get("DROPBOX_CONTENT_URL", DEFAULT_CONTENT_URL).rstrip("/")

    @property
    def notify_url(self) -> str:
        return os.environ.get("DROPBOX_NOTIFY_URL", DEFAULT_NOTIFY_URL).rstrip("/")

    def is_configured(self) -> bool:
        """Check whether an access token is available."""
        return bool(self.api_key)

    def save_api_key(self, api_key: str) -> None:
        """Store the access token in the config file.

        Args:
            api_key: Access token to persist
        """
        values = self._read_file()
        values[TOKEN_ENV_VAR] = api_key

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        content = "".join(f"{key}={value}\n" for key, value in values.items())
        path.write_text(content, encoding="utf-8")
        # Token file must not be world readable
        path.chmod(0o600)
        logger.debug(f"Saved access token to {path}")


config = Config()
