"""Python client and command-line tool for the smart-me energy monitoring API.

The package is organized into three layers:
1. **Config Store** (pysmartme.config): Durable storage for the API key or username/password
2. **API Layer** (pysmartme.api): Authenticated HTTP calls against https://api.smart-me.com
3. **Command Surface** (pysmartme.cli): The ``smartme`` command, rendering tables or JSON

Example:
    Library usage:

    ```python
    from pysmartme import ConfigStore, SmartMeAPI

    store = ConfigStore()
    store.set("apiKey", "my-api-key")

    async with SmartMeAPI(store=store) as api:
        devices = await api.list_devices()
        for device in devices:
            print(device["Name"], device.get("ActivePower"))
    ```

    Command line:

    ```
    smartme config set --api-key <key>
    smartme devices list
    smartme actions switch SN123 on
    ```
"""

from __future__ import annotations

from pysmartme.api import SmartMeAPI
from pysmartme.auth import AuthenticationHandler, build_auth_headers
from pysmartme.config import ConfigStore
from pysmartme.exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SmartMeError,
)
from pysmartme.models import Credentials, JSONValue


__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "AuthenticationError",
    "AuthenticationHandler",
    "AuthorizationError",
    "ConfigStore",
    "ConfigurationError",
    "Credentials",
    "JSONValue",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "SmartMeAPI",
    "SmartMeError",
    "__version__",
    "build_auth_headers",
]
