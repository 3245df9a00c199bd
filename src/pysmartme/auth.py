"""Authentication handler for the smart-me API."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

from pysmartme.exceptions import ConfigurationError


if TYPE_CHECKING:
    from pysmartme.config import ConfigStore
    from pysmartme.models import Credentials

_LOGGER = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "API key or username/password not configured. Run: smartme config set --api-key <key>"
)


def basic_auth_value(username: str, password: str) -> str:
    """Build an HTTP Basic ``Authorization`` value from a username and password.

    Args:
        username: Account username.
        password: Account password.

    Returns:
        ``"Basic <base64(username:password)>"``.
    """
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def build_auth_headers(credentials: Credentials) -> dict[str, str]:
    """Build request headers for the given credentials.

    An API key always wins over a username/password pair.

    Args:
        credentials: Credentials snapshot from the config store.

    Returns:
        Headers including ``Authorization`` and the JSON content type.

    Raises:
        ConfigurationError: If neither an API key nor a full username/password
            pair is present.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    if credentials.api_key:
        headers["Authorization"] = f"Bearer {credentials.api_key}"
    elif credentials.username and credentials.password:
        headers["Authorization"] = basic_auth_value(credentials.username, credentials.password)
    else:
        raise ConfigurationError(MISSING_CREDENTIALS_MESSAGE)

    return headers


class AuthenticationHandler:
    """Resolve request headers from a config store.

    Credentials are re-read from the store on every call, so a ``config set``
    made between two requests is picked up without rebuilding the handler.

    Attributes:
        store: ConfigStore the credentials are read from.
    """

    def __init__(self, store: ConfigStore) -> None:
        """Initialize the handler.

        Args:
            store: ConfigStore holding the credentials.
        """
        self.store = store

    def headers(self) -> dict[str, str]:
        """Return headers for the next request.

        Raises:
            ConfigurationError: If the store holds no usable credentials.
        """
        headers = build_auth_headers(self.store.credentials())
        _LOGGER.debug("Using %s authentication", headers["Authorization"].split(" ", 1)[0])
        return headers
