"""API client for the smart-me REST endpoints.

This module provides direct HTTP communication with the smart-me API.
Every method returns the decoded response body untouched and raises a typed
SmartMeError for anything other than a 2xx response.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import ClientConnectionError, ClientResponse, ClientSession, ClientTimeout

from pysmartme.auth import AuthenticationHandler
from pysmartme.const import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from pysmartme.exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SmartMeError,
)


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from pysmartme.config import ConfigStore
    from pysmartme.models import JSONValue

_LOGGER = logging.getLogger(__name__)

AUTHENTICATION_FAILED_MESSAGE = "Authentication failed. Check your API key or credentials."
ACCESS_FORBIDDEN_MESSAGE = "Access forbidden. Check your API permissions."
NOT_FOUND_MESSAGE = "Resource not found."
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait before retrying."
NO_RESPONSE_MESSAGE = "No response from smart-me API. Check your internet connection."
MALFORMED_BODY_MESSAGE = "Response body could not be decoded."


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def extract_error_message(body: JSONValue) -> str:
    """Pull a human-readable message out of an error response body.

    Prefers a ``message`` field, then an ``error`` field, then the raw
    serialized body. Whitespace runs in text are collapsed so the message
    always fits on one line, even for an HTML error page.

    Args:
        body: Decoded error body (JSON value, or raw text if it was not JSON).

    Returns:
        Best-effort single-line message, possibly empty.
    """
    if isinstance(body, dict):
        for field in ("message", "error"):
            value = body.get(field)
            if value:
                return _single_line(value) if isinstance(value, str) else json.dumps(value)
    if body is None:
        return ""
    if isinstance(body, str):
        return _single_line(body)
    return json.dumps(body)


def _single_line(text: str) -> str:
    return " ".join(text.split())


class SmartMeAPI:
    """API client for the smart-me platform.

    Credentials are read from the ConfigStore each time a request is built,
    so a missing configuration is reported as ConfigurationError before any
    network traffic happens. No request is ever retried, including after a
    429 response.

    Example:
        ```python
        from pysmartme.api import SmartMeAPI
        from pysmartme.config import ConfigStore

        async with SmartMeAPI(store=ConfigStore()) as api:
            devices = await api.list_devices()
            await api.switch_device(devices[0]["Serial"], on=True)
        ```

    Attributes:
        base_url: Base URL for the API (default: https://api.smart-me.com).
    """

    def __init__(
        self,
        *,
        store: ConfigStore,
        session: ClientSession | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the API client.

        Args:
            store: ConfigStore holding the credentials.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            base_url: Base URL for the API. Defaults to the smart-me production API.
            timeout: Total request timeout in seconds. Expiry surfaces as NetworkError.
        """
        self._auth_handler = AuthenticationHandler(store)
        self._session = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=timeout)
        self.base_url = base_url.rstrip("/")

    async def __aenter__(self) -> SmartMeAPI:
        """Enter the context manager, creating a session if none was injected.

        Returns:
            Self for use in async with statements.
        """
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager.

        Closes the session if it was created by this client.

        Args:
            exc_type: Exception type if an exception occurred.
            exc_val: Exception value if an exception occurred.
            exc_tb: Exception traceback if an exception occurred.
        """
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: dict[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> JSONValue:
        """Make an authenticated API request.

        This is the core method for all HTTP communication. It handles:
        - Authentication headers (Bearer API key, else HTTP Basic)
        - Response decoding
        - Translation of failures into the SmartMeError taxonomy

        Args:
            method: HTTP method (GET, POST).
            endpoint: API endpoint path (e.g., "/api/Devices").
            json_data: Optional JSON data for request body.
            params: Optional query parameters.

        Returns:
            Decoded response body, or None if the response had no content.

        Raises:
            ConfigurationError: If no credentials are configured.
            AuthenticationError: On 401.
            AuthorizationError: On 403.
            NotFoundError: On 404.
            RateLimitError: On 429.
            ApiError: On any other non-2xx status.
            NetworkError: If no response was received.
            RuntimeError: If session is not initialized or is closed.
        """
        # Resolved first so a missing configuration never reaches the network
        headers = self._auth_handler.headers()

        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make request."
            raise RuntimeError(msg)

        url = f"{self.base_url}{endpoint}"
        _LOGGER.debug("API request %s %s params=%s", method, endpoint, params)

        try:
            async with self._session.request(
                method,
                url,
                json=json_data,
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as response:
                _LOGGER.debug("API response %s %s status=%d", method, endpoint, response.status)

                if HTTPStatus.OK <= response.status < HTTPStatus.MULTIPLE_CHOICES:
                    return await self._decode_body(response)

                raise await self._error_for_status(response)

        except (ClientConnectionError, TimeoutError) as exc:
            _LOGGER.debug("No response for %s %s: %r", method, url, exc)
            raise NetworkError(NO_RESPONSE_MESSAGE) from exc

    @staticmethod
    async def _decode_body(response: ClientResponse) -> JSONValue:
        try:
            text = await response.text()
            if not text:
                return None
            # Check content-type with substring match to handle charset parameters
            if "json" in response.content_type:
                return json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            _LOGGER.debug("Undecodable %s body: %s", response.content_type, err)
            raise ApiError(response.status, MALFORMED_BODY_MESSAGE) from err
        return text

    @staticmethod
    async def _error_for_status(response: ClientResponse) -> SmartMeError:
        status = response.status

        if status == HTTPStatus.UNAUTHORIZED:
            return AuthenticationError(AUTHENTICATION_FAILED_MESSAGE)
        if status == HTTPStatus.FORBIDDEN:
            return AuthorizationError(ACCESS_FORBIDDEN_MESSAGE)
        if status == HTTPStatus.NOT_FOUND:
            return NotFoundError(NOT_FOUND_MESSAGE)
        if status == HTTPStatus.TOO_MANY_REQUESTS:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            return RateLimitError(RATE_LIMIT_MESSAGE, retry_after=retry_after)

        body: JSONValue
        try:
            text = await response.text()
        except UnicodeDecodeError:
            return ApiError(status, MALFORMED_BODY_MESSAGE)
        try:
            body = json.loads(text) if text else None
        except json.JSONDecodeError:
            body = text
        return ApiError(status, extract_error_message(body))

    # -------------------------------------------------------------------------
    # Device Endpoints
    # -------------------------------------------------------------------------

    async def list_devices(self) -> JSONValue:
        """Get all devices of the authenticated user.

        Returns:
            List of device records, e.g.
            [{"Id": ..., "Name": str, "Serial": str, "DeviceEnergyType": str, "ActivePower": float}]
        """
        return await self.request("GET", "/api/Devices")

    async def get_device(self, device_id: str) -> JSONValue:
        """Get a single device.

        Args:
            device_id: Device identifier.

        Returns:
            Device record.
        """
        return await self.request("GET", f"/api/Devices/{device_id}")

    async def get_device_values(self, device_id: str) -> JSONValue:
        """Get the current values of a device, looked up by serial number.

        Args:
            device_id: Device serial number.

        Returns:
            Device record including ActivePower, CounterReading, Temperature.
        """
        return await self.request("GET", "/api/DeviceBySerial", params={"serial": device_id})

    # -------------------------------------------------------------------------
    # Measurement Endpoints
    # -------------------------------------------------------------------------

    async def get_measurements(
        self,
        device_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> JSONValue:
        """Get meter values for a device.

        Args:
            device_id: Device identifier.
            params: Optional query parameters, passed through as-is.

        Returns:
            Meter value records, e.g. [{"Date": str, "Value": float, "Unit": str}].
        """
        return await self.request("GET", f"/api/MeterValues/{device_id}", params=params or None)

    async def get_realtime_measurements(self, device_id: str) -> JSONValue:
        """Get realtime values (power, voltage, current) for a device.

        Served by the same endpoint as get_device_values.

        Args:
            device_id: Device serial number.
        """
        return await self.request("GET", "/api/DeviceBySerial", params={"serial": device_id})

    async def get_historical_data(self, device_id: str, start_date: str, end_date: str) -> JSONValue:
        """Get meter values between two dates.

        Args:
            device_id: Device identifier.
            start_date: Start date, sent as the ``date`` query parameter.
            end_date: End date, sent as the ``endDate`` query parameter.
        """
        return await self.request(
            "GET",
            f"/api/MeterValues/{device_id}",
            params={"date": start_date, "endDate": end_date},
        )

    # -------------------------------------------------------------------------
    # Action Endpoints
    # -------------------------------------------------------------------------

    async def switch_device(self, device_id: str, on: bool) -> JSONValue:
        """Switch a device on or off.

        Args:
            device_id: Device identifier.
            on: True to switch on, False to switch off.
        """
        return await self.request(
            "POST",
            f"/api/Devices/{device_id}/Switch",
            json_data={"state": "On" if on else "Off"},
        )

    async def set_device_values(self, device_id: str, values: Mapping[str, Any]) -> JSONValue:
        """Push values for a device, addressed by serial number.

        Args:
            device_id: Device serial number, sent as ``DeviceSerial``.
            values: Additional fields merged into the request body.
        """
        return await self.request(
            "POST",
            "/api/DeviceBySerial",
            json_data={"DeviceSerial": device_id, **values},
        )

    # -------------------------------------------------------------------------
    # User Endpoints
    # -------------------------------------------------------------------------

    async def get_user_info(self) -> JSONValue:
        """Get the authenticated user's account information."""
        return await self.request("GET", "/api/User")

    async def list_access_tokens(self) -> JSONValue:
        """List the access tokens of the authenticated user."""
        return await self.request("GET", "/api/AccessTokens")
