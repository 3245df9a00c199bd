"""Tests for the smartme command line."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import ClientConnectionError
from typer.testing import CliRunner

from pysmartme import __version__
from pysmartme.cli import app, parse_assignments, parse_switch_state


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from click.testing import Result

    from pysmartme.config import ConfigStore


SAMPLE_DEVICES = [
    {
        "Id": 1,
        "Name": "Meter1",
        "Serial": "SN1",
        "DeviceEnergyType": "Electricity",
        "ActivePower": 123.456,
    }
]


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def session_factory(mock_session: MagicMock) -> Iterator[MagicMock]:
    """Patch the aiohttp ClientSession class used by the API client.

    Yields:
        The patched class; its return value is the shared mock session.
    """
    with patch("pysmartme.api.ClientSession", return_value=mock_session) as factory:
        yield factory


@pytest.fixture
def invoke(runner: CliRunner, store: ConfigStore) -> Callable[..., Result]:
    """Return a helper invoking the app against the temporary store."""

    def _invoke(*args: str) -> Result:
        return runner.invoke(app, list(args), obj=store)

    return _invoke


def respond(
    session: MagicMock,
    make_response: Callable[..., MagicMock],
    status: int = 200,
    body: Any = None,
) -> None:
    """Make every request on ``session`` answer with ``status`` and ``body``."""
    session.request.return_value = make_response(status, body)


class TestTopLevel:
    """Test the program entry point."""

    def test_no_arguments_prints_help(self, invoke: Callable[..., Result]) -> None:
        """Test invoking without a subcommand shows help."""
        result = invoke()
        assert "Usage" in result.output
        for group in ("config", "devices", "measurements", "actions", "user"):
            assert group in result.output

    def test_group_without_subcommand_prints_help(self, invoke: Callable[..., Result]) -> None:
        """Test a command group without a subcommand shows its help."""
        result = invoke("devices")
        assert "list" in result.output
        assert "values" in result.output

    def test_version(self, invoke: Callable[..., Result]) -> None:
        """Test --version prints the package version."""
        result = invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output


class TestConfigCommands:
    """Test config set/show/clear."""

    def test_set_api_key_then_show(self, invoke: Callable[..., Result], store: ConfigStore) -> None:
        """Test the API key is stored and shown masked."""
        result = invoke("config", "set", "--api-key", "XYZ")
        assert result.exit_code == 0
        assert "API key set" in result.output
        assert store.get("apiKey") == "XYZ"

        result = invoke("config", "show")
        assert result.exit_code == 0
        assert "*" * 16 in result.output
        assert "XYZ" not in result.output
        assert result.output.count("not set") == 2

    def test_set_username_password_then_show(self, invoke: Callable[..., Result], store: ConfigStore) -> None:
        """Test the username is shown and the password masked."""
        result = invoke("config", "set", "--username", "alice", "--password", "hunter2hunter2")
        assert result.exit_code == 0
        assert "Username set" in result.output
        assert "Password set" in result.output

        result = invoke("config", "show")
        assert "alice" in result.output
        assert "hunter2" not in result.output
        assert "Password: " + "*" * 8 in result.output
        assert result.output.count("not set") == 1

    def test_mask_is_length_independent(self, invoke: Callable[..., Result]) -> None:
        """Test the mask does not reveal the secret's length."""
        invoke("config", "set", "--api-key", "k")
        short = invoke("config", "show").output
        invoke("config", "set", "--api-key", "k" * 64)
        long = invoke("config", "show").output
        assert short == long

    def test_set_without_options(self, invoke: Callable[..., Result], store: ConfigStore) -> None:
        """Test config set with nothing to set reports an error."""
        result = invoke("config", "set")
        assert result.exit_code != 0
        assert "No options provided" in result.output
        assert not store.path.exists()

    def test_clear(self, invoke: Callable[..., Result], api_key_store: ConfigStore) -> None:
        """Test config clear removes credentials."""
        result = invoke("config", "clear")
        assert result.exit_code == 0
        assert api_key_store.is_configured() is False


class TestAuthenticationRequired:
    """Test commands refuse to run without credentials."""

    @pytest.mark.parametrize(
        "args",
        [
            ("devices", "list"),
            ("devices", "get", "1"),
            ("devices", "values", "SN1"),
            ("measurements", "get", "1"),
            ("measurements", "realtime", "SN1"),
            ("measurements", "history", "1", "--start", "2024-01-01", "--end", "2024-01-31"),
            ("actions", "switch", "SN1", "on"),
            ("actions", "set", "SN1", "ActivePower=1"),
            ("user", "info"),
            ("user", "tokens"),
        ],
    )
    def test_no_network_without_credentials(
        self,
        invoke: Callable[..., Result],
        session_factory: MagicMock,
        mock_session: MagicMock,
        args: tuple[str, ...],
    ) -> None:
        """Test guidance is printed, the exit code is non-zero and nothing is sent."""
        result = invoke(*args)

        assert result.exit_code != 0
        assert "Authentication not configured" in result.output
        assert "smartme config set --api-key <key>" in result.output
        session_factory.assert_not_called()
        mock_session.request.assert_not_called()


@pytest.mark.usefixtures("api_key_store", "session_factory")
class TestDeviceCommands:
    """Test the devices group."""

    def test_list_table(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test devices list renders the device table."""
        respond(mock_session, make_response, body=SAMPLE_DEVICES)

        result = invoke("devices", "list")

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].split() == ["ID", "Name", "Serial", "Type", "Power", "(W)"]
        assert lines[2].split() == ["1", "Meter1", "SN1", "Electricity", "123.46"]
        assert "1 result(s)" in result.stdout

        call = mock_session.request.call_args
        assert call.args == ("GET", "https://api.smart-me.com/api/Devices")
        assert call.kwargs["headers"]["Authorization"] == "Bearer abc123"

    def test_list_json(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test --json prints the raw payload as valid JSON."""
        respond(mock_session, make_response, body=SAMPLE_DEVICES)

        result = invoke("devices", "list", "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout) == SAMPLE_DEVICES

    @pytest.mark.parametrize("payload", [[], {}])
    def test_list_empty(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
        payload: Any,
    ) -> None:
        """Test an empty result prints the no-results notice."""
        respond(mock_session, make_response, body=payload)

        result = invoke("devices", "list")

        assert result.exit_code == 0
        assert "No results found." in result.stdout
        assert "result(s)" not in result.stdout

    def test_get_details(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test devices get prints a detail block."""
        respond(mock_session, make_response, body=SAMPLE_DEVICES[0])

        result = invoke("devices", "get", "1")

        assert result.exit_code == 0
        assert "Device Details" in result.stdout
        assert "Meter1" in result.stdout
        assert "123.46 W" in result.stdout
        assert mock_session.request.call_args.args[1].endswith("/api/Devices/1")

    def test_values_details(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test devices values prints readings with units and N/A for gaps."""
        respond(mock_session, make_response, body={"ActivePower": 10, "CounterReading": 1843.271})

        result = invoke("devices", "values", "SN1")

        assert result.exit_code == 0
        assert "10.00 W" in result.stdout
        assert "1843.27 kWh" in result.stdout
        assert "N/A" in result.stdout
        assert mock_session.request.call_args.kwargs["params"] == {"serial": "SN1"}


@pytest.mark.usefixtures("api_key_store", "session_factory")
class TestMeasurementCommands:
    """Test the measurements group."""

    def test_get_table(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test measurements get renders Date/Value/Unit."""
        respond(mock_session, make_response, body=[{"Date": "2024-01-01", "Value": 1.5, "Unit": "kWh"}])

        result = invoke("measurements", "get", "42")

        assert result.exit_code == 0
        assert result.stdout.splitlines()[2].split() == ["2024-01-01", "1.50", "kWh"]
        assert mock_session.request.call_args.args[1].endswith("/api/MeterValues/42")

    def test_realtime_details(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test measurements realtime prints power, voltage and current."""
        respond(mock_session, make_response, body={"ActivePower": 1, "Voltage": 230.04, "Current": 4.2})

        result = invoke("measurements", "realtime", "SN1")

        assert result.exit_code == 0
        assert "Realtime Measurements" in result.stdout
        assert "230.04 V" in result.stdout
        assert "4.20 A" in result.stdout

    def test_history_requires_dates(self, invoke: Callable[..., Result], mock_session: MagicMock) -> None:
        """Test history without --start/--end is a usage error."""
        result = invoke("measurements", "history", "42", "--start", "2024-01-01")

        assert result.exit_code == 2
        mock_session.request.assert_not_called()

    def test_history_query(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test history sends date and endDate."""
        respond(mock_session, make_response, body=[])

        result = invoke("measurements", "history", "42", "--start", "2024-01-01", "--end", "2024-01-31")

        assert result.exit_code == 0
        assert mock_session.request.call_args.kwargs["params"] == {"date": "2024-01-01", "endDate": "2024-01-31"}


@pytest.mark.usefixtures("api_key_store", "session_factory")
class TestActionCommands:
    """Test the actions group."""

    @pytest.mark.parametrize(
        ("state", "body", "label"),
        [
            ("On", {"state": "On"}, "on"),
            ("off", {"state": "Off"}, "off"),
            ("1", {"state": "On"}, "on"),
            ("0", {"state": "Off"}, "off"),
            ("TRUE", {"state": "On"}, "on"),
            ("false", {"state": "Off"}, "off"),
        ],
    )
    def test_switch(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
        state: str,
        body: dict[str, str],
        label: str,
    ) -> None:
        """Test switch posts the requested state."""
        respond(mock_session, make_response)

        result = invoke("actions", "switch", "SN1", state)

        assert result.exit_code == 0
        assert f"Device switched {label}" in result.output
        call = mock_session.request.call_args
        assert call.args == ("POST", "https://api.smart-me.com/api/Devices/SN1/Switch")
        assert call.kwargs["json"] == body

    def test_switch_invalid_state(self, invoke: Callable[..., Result], mock_session: MagicMock) -> None:
        """Test an unknown state is rejected before any request."""
        result = invoke("actions", "switch", "SN1", "maybe")

        assert result.exit_code == 2
        mock_session.request.assert_not_called()

    def test_set_values(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test actions set sends decoded values with the serial."""
        respond(mock_session, make_response)

        result = invoke("actions", "set", "SN1", "ActivePower=12.5", "Name=Kitchen", "Enabled=true")

        assert result.exit_code == 0
        call = mock_session.request.call_args
        assert call.args == ("POST", "https://api.smart-me.com/api/DeviceBySerial")
        assert call.kwargs["json"] == {
            "DeviceSerial": "SN1",
            "ActivePower": 12.5,
            "Name": "Kitchen",
            "Enabled": True,
        }

    def test_set_values_bad_assignment(self, invoke: Callable[..., Result], mock_session: MagicMock) -> None:
        """Test an item without '=' is a usage error."""
        result = invoke("actions", "set", "SN1", "ActivePower")

        assert result.exit_code == 2
        mock_session.request.assert_not_called()


@pytest.mark.usefixtures("api_key_store", "session_factory")
class TestUserCommands:
    """Test the user group."""

    def test_info(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test user info prints username and email."""
        respond(mock_session, make_response, body={"Username": "alice", "Email": "alice@example.com"})

        result = invoke("user", "info")

        assert result.exit_code == 0
        assert "alice@example.com" in result.stdout

    def test_tokens_json(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test user tokens --json round-trips the payload."""
        tokens = [{"Id": "t1", "Name": "CLI", "Created": "2024-01-01"}]
        respond(mock_session, make_response, body=tokens)

        result = invoke("user", "tokens", "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout) == tokens


@pytest.mark.usefixtures("api_key_store", "session_factory")
class TestErrorReporting:
    """Test API failures become a message and a non-zero exit."""

    def test_rate_limited(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test a 429 is reported once without retrying."""
        respond(mock_session, make_response, status=429)

        result = invoke("devices", "list")

        assert result.exit_code != 0
        assert "Rate limit exceeded" in result.output
        assert mock_session.request.call_count == 1

    @pytest.mark.parametrize(
        ("status", "body", "message"),
        [
            (401, None, "Authentication failed. Check your API key or credentials."),
            (403, None, "Access forbidden. Check your API permissions."),
            (404, None, "Resource not found."),
            (500, {"error": "boom"}, "API Error (500): boom"),
        ],
    )
    def test_http_errors(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
        status: int,
        body: Any,
        message: str,
    ) -> None:
        """Test each error class prints its message."""
        respond(mock_session, make_response, status=status, body=body)

        result = invoke("user", "info")

        assert result.exit_code == 1
        assert message in result.output

    def test_html_error_page_on_one_line(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test a multi-line error body is printed as a single line."""
        mock_session.request.return_value = make_response(
            500, "<html>\n<body>Internal\nError</body>\n</html>", content_type="text/html"
        )

        result = invoke("devices", "list")

        assert result.exit_code == 1
        assert result.output.splitlines() == ["✗ API Error (500): <html> <body>Internal Error</body> </html>"]

    def test_malformed_success_body(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test an unparseable JSON success body is reported without a traceback."""
        mock_session.request.return_value = make_response(200, "{not json")

        result = invoke("devices", "list")

        assert result.exit_code == 1
        assert "Response body could not be decoded." in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_network_error(self, invoke: Callable[..., Result], mock_session: MagicMock) -> None:
        """Test a connection failure prints the network message."""
        response = MagicMock()
        response.__aenter__ = AsyncMock(side_effect=ClientConnectionError("refused"))
        response.__aexit__ = AsyncMock(return_value=None)
        mock_session.request.return_value = response

        result = invoke("devices", "list")

        assert result.exit_code == 1
        assert "No response from smart-me API" in result.output

    def test_session_closed_after_command(
        self,
        invoke: Callable[..., Result],
        mock_session: MagicMock,
        make_response: Callable[..., MagicMock],
    ) -> None:
        """Test the session created for a command is closed afterwards."""
        respond(mock_session, make_response, body=[])

        invoke("devices", "list")

        mock_session.close.assert_awaited_once()


class TestArgumentParsing:
    """Test helpers that parse positional arguments."""

    @pytest.mark.parametrize("value", ["on", "ON", "On", "1", "true", "True"])
    def test_on_values(self, value: str) -> None:
        """Test every accepted spelling of on."""
        assert parse_switch_state(value) is True

    @pytest.mark.parametrize("value", ["off", "OFF", "0", "false", "FALSE"])
    def test_off_values(self, value: str) -> None:
        """Test every accepted spelling of off."""
        assert parse_switch_state(value) is False

    def test_assignments(self) -> None:
        """Test JSON decoding with a string fallback."""
        assert parse_assignments(["a=1", "b=x", "c=", "d={\"k\": [1]}", "e=a=b"]) == {
            "a": 1,
            "b": "x",
            "c": "",
            "d": {"k": [1]},
            "e": "a=b",
        }
