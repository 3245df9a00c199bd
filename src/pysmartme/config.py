"""Durable credential storage for the smart-me CLI.

The store is a small JSON document holding the API key and the
username/password pair. Each write is flushed to disk immediately; there is
no in-memory-only mode.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pysmartme.const import (
    CONFIG_FILE_NAME,
    CONFIG_KEY_API_KEY,
    CONFIG_KEY_PASSWORD,
    CONFIG_KEY_USERNAME,
    CONFIG_KEYS,
    CONFIG_PROJECT_NAME,
)
from pysmartme.models import Credentials


__all__ = ["ConfigStore", "default_config_path"]

_LOGGER = logging.getLogger(__name__)


def default_config_path() -> Path:
    """Return the per-user location of the config file."""
    return Path.home() / ".config" / CONFIG_PROJECT_NAME / CONFIG_FILE_NAME


class ConfigStore:
    """Key-value store for the three credential fields.

    Keys are restricted to ``apiKey``, ``username`` and ``password``; each
    defaults to an empty string. Storage I/O errors are not handled here.

    Example:
        ```python
        store = ConfigStore()
        store.set("apiKey", "abc123")
        if store.is_configured():
            creds = store.credentials()
        ```

    Attributes:
        path: Location of the JSON file backing the store.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        """Initialize the store.

        Args:
            path: Optional path of the backing file. Defaults to
                ``~/.config/smartme-cli/config.json``.
        """
        self.path = Path(path) if path is not None else default_config_path()

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _LOGGER.warning("Ignoring unreadable config file %s", self.path)
            return {}

        if not isinstance(data, dict):
            _LOGGER.warning("Ignoring config file %s: expected a JSON object", self.path)
            return {}

        return {key: str(data[key]) for key in CONFIG_KEYS if data.get(key) is not None}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.chmod(0o600)
        os.replace(tmp_path, self.path)
        _LOGGER.debug("Wrote config file %s", self.path)

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in CONFIG_KEYS:
            msg = f"Unknown config key {key!r}; expected one of {', '.join(CONFIG_KEYS)}"
            raise KeyError(msg)

    def get(self, key: str, default: str = "") -> str:
        """Return the stored value for ``key``, or ``default`` if unset."""
        self._check_key(key)
        return self._read().get(key, default)

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` and persist it immediately."""
        self._check_key(key)
        data = self._read()
        data[key] = value
        self._write(data)

    def get_all(self) -> dict[str, str]:
        """Return every key with defaults filled in."""
        data = self._read()
        return {key: data.get(key, "") for key in CONFIG_KEYS}

    def clear(self) -> None:
        """Remove every stored value."""
        self._write({})

    def credentials(self) -> Credentials:
        """Return a snapshot of the stored credentials."""
        data = self.get_all()
        return Credentials(
            api_key=data[CONFIG_KEY_API_KEY],
            username=data[CONFIG_KEY_USERNAME],
            password=data[CONFIG_KEY_PASSWORD],
        )

    def is_configured(self) -> bool:
        """Return True if an API key, or both username and password, are stored."""
        return self.credentials().is_complete
