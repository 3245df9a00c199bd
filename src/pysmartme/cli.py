"""Command-line interface for the smart-me API.

Commands:
  smartme config set|show|clear     Manage stored credentials
  smartme devices list|get|values   Inspect devices
  smartme measurements get|realtime|history
  smartme actions switch|set        Control devices
  smartme user info|tokens          Account information

Each invocation builds its own ConfigStore and hands it to the API client;
nothing is shared between invocations except the config file itself.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import nullcontext
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from pysmartme import __version__
from pysmartme.api import SmartMeAPI
from pysmartme.config import ConfigStore
from pysmartme.const import (
    API_KEY_MASK,
    CONFIG_KEY_API_KEY,
    CONFIG_KEY_PASSWORD,
    CONFIG_KEY_USERNAME,
    PASSWORD_MASK,
    SWITCH_OFF_VALUES,
    SWITCH_ON_VALUES,
)
from pysmartme.exceptions import SmartMeError
from pysmartme.output import (
    Column,
    fixed,
    measure,
    print_details,
    print_error,
    print_json,
    print_success,
    print_table,
    text_or_na,
)


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from contextlib import AbstractContextManager

    from pysmartme.models import JSONValue

_LOGGER = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="smartme",
    help="smart-me CLI - Smart energy monitoring from your terminal",
    no_args_is_help=True,
    add_completion=False,
)
config_app = typer.Typer(help="Manage CLI configuration", no_args_is_help=True)
devices_app = typer.Typer(help="Manage devices", no_args_is_help=True)
measurements_app = typer.Typer(help="Manage measurements", no_args_is_help=True)
actions_app = typer.Typer(help="Device actions", no_args_is_help=True)
user_app = typer.Typer(help="User information", no_args_is_help=True)

app.add_typer(config_app, name="config")
app.add_typer(devices_app, name="devices")
app.add_typer(measurements_app, name="measurements")
app.add_typer(actions_app, name="actions")
app.add_typer(user_app, name="user")

JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]
DeviceIdArgument = Annotated[str, typer.Argument(metavar="DEVICE-ID", help="Device ID or serial number")]

DEVICE_COLUMNS = (
    Column("Id", "ID"),
    Column("Name", "Name"),
    Column("Serial", "Serial"),
    Column("DeviceEnergyType", "Type"),
    Column("ActivePower", "Power (W)", fixed(2)),
)
METER_VALUE_COLUMNS = (
    Column("Date", "Date"),
    Column("Value", "Value", fixed(2)),
    Column("Unit", "Unit"),
)
TOKEN_COLUMNS = (
    Column("Id", "ID"),
    Column("Name", "Name"),
    Column("Created", "Created"),
)


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("pysmartme")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False))


def _store(ctx: typer.Context) -> ConfigStore:
    return ctx.ensure_object(ConfigStore)


def _require_auth(ctx: typer.Context) -> ConfigStore:
    """Return the store, or exit with guidance if no credentials are configured."""
    store = _store(ctx)
    if not store.is_configured():
        print_error(err_console, "Authentication not configured.")
        err_console.print("\nRun one of the following to configure:")
        err_console.print(Text("  smartme config set --api-key <key>", style="cyan"))
        err_console.print(Text("  smartme config set --username <user> --password <pass>", style="cyan"))
        raise typer.Exit(1)
    return store


def _spinner(message: str) -> AbstractContextManager[Any]:
    # Only animate on a real terminal so redirected output stays clean
    if err_console.is_terminal:
        return err_console.status(message)
    return nullcontext()


def _run(
    store: ConfigStore,
    message: str,
    operation: Callable[[SmartMeAPI], Awaitable[JSONValue]],
) -> JSONValue:
    """Run one API operation, exiting with its message on any SmartMeError."""

    async def _call() -> JSONValue:
        async with SmartMeAPI(store=store) as api:
            return await operation(api)

    try:
        with _spinner(message):
            return asyncio.run(_call())
    except SmartMeError as err:
        _LOGGER.debug("Command failed with %s error", err.kind)
        print_error(err_console, str(err))
        raise typer.Exit(1) from err


def _record(payload: JSONValue) -> dict[str, Any]:
    return payload if isinstance(payload, dict) else {}


def parse_switch_state(state: str) -> bool:
    """Map ``on/off/1/0/true/false`` (any case) to a bool.

    Raises:
        typer.BadParameter: For any other value.
    """
    normalized = state.strip().lower()
    if normalized in SWITCH_ON_VALUES:
        return True
    if normalized in SWITCH_OFF_VALUES:
        return False
    msg = f"{state!r} is not one of on, off, 1, 0, true, false."
    raise typer.BadParameter(msg, param_hint="'STATE'")


def parse_assignments(assignments: list[str]) -> dict[str, Any]:
    """Parse ``KEY=VALUE`` pairs; values are decoded as JSON when possible.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key.
    """
    values: dict[str, Any] = {}
    for item in assignments:
        key, sep, raw = item.partition("=")
        if not sep or not key:
            msg = f"{item!r} is not in KEY=VALUE form."
            raise typer.BadParameter(msg, param_hint="'VALUES'")
        try:
            values[key] = json.loads(raw)
        except json.JSONDecodeError:
            values[key] = raw
    return values


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"smartme {__version__}")
        raise typer.Exit


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit"),
    ] = None,
) -> None:
    """smart-me CLI - Smart energy monitoring from your terminal."""
    _configure_logging(verbose)
    _store(ctx)


# -------------------------------------------------------------------------
# config
# -------------------------------------------------------------------------


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    api_key: Annotated[str | None, typer.Option("--api-key", metavar="KEY", help="smart-me API key")] = None,
    username: Annotated[str | None, typer.Option("--username", metavar="USER", help="smart-me username")] = None,
    password: Annotated[str | None, typer.Option("--password", metavar="PASS", help="smart-me password")] = None,
) -> None:
    """Set configuration values."""
    store = _store(ctx)
    updates = (
        (CONFIG_KEY_API_KEY, api_key, "API key set"),
        (CONFIG_KEY_USERNAME, username, "Username set"),
        (CONFIG_KEY_PASSWORD, password, "Password set"),
    )
    changed = False
    for key, value, message in updates:
        if value:
            store.set(key, value)
            print_success(console, message)
            changed = True

    if not changed:
        print_error(err_console, "No options provided. Use --api-key or --username/--password")
        raise typer.Exit(1)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show current configuration."""
    data = _store(ctx).get_all()
    not_set = Text("not set", style="red")

    print_details(
        console,
        "smart-me CLI Configuration",
        [
            ("API Key", Text(API_KEY_MASK, style="green") if data[CONFIG_KEY_API_KEY] else not_set),
            ("Username", Text(data[CONFIG_KEY_USERNAME], style="green") if data[CONFIG_KEY_USERNAME] else not_set),
            ("Password", Text(PASSWORD_MASK, style="green") if data[CONFIG_KEY_PASSWORD] else not_set),
        ],
    )
    console.print()


@config_app.command("clear")
def config_clear(ctx: typer.Context) -> None:
    """Remove all stored credentials."""
    _store(ctx).clear()
    print_success(console, "Configuration cleared")


# -------------------------------------------------------------------------
# devices
# -------------------------------------------------------------------------


@devices_app.command("list")
def devices_list(ctx: typer.Context, as_json: JsonOption = False) -> None:
    """List all devices."""
    store = _require_auth(ctx)
    devices = _run(store, "Fetching devices...", lambda api: api.list_devices())
    if as_json:
        print_json(console, devices)
        return
    print_table(console, devices, DEVICE_COLUMNS)


@devices_app.command("get")
def devices_get(ctx: typer.Context, device_id: DeviceIdArgument, as_json: JsonOption = False) -> None:
    """Get device details."""
    store = _require_auth(ctx)
    payload = _run(store, "Fetching device...", lambda api: api.get_device(device_id))
    if as_json:
        print_json(console, payload)
        return
    device = _record(payload)
    print_details(
        console,
        "Device Details",
        [
            ("ID", text_or_na(device.get("Id"))),
            ("Name", text_or_na(device.get("Name"))),
            ("Serial", text_or_na(device.get("Serial"))),
            ("Type", text_or_na(device.get("DeviceEnergyType"))),
            ("Power", measure(device.get("ActivePower"), "W")),
        ],
    )


@devices_app.command("values")
def devices_values(ctx: typer.Context, device_id: DeviceIdArgument, as_json: JsonOption = False) -> None:
    """Get device values."""
    store = _require_auth(ctx)
    payload = _run(store, "Fetching values...", lambda api: api.get_device_values(device_id))
    if as_json:
        print_json(console, payload)
        return
    values = _record(payload)
    print_details(
        console,
        "Device Values",
        [
            ("Active Power", measure(values.get("ActivePower"), "W")),
            ("Counter Reading", measure(values.get("CounterReading"), "kWh")),
            ("Temperature", measure(values.get("Temperature"), "°C", digits=1)),
        ],
    )


# -------------------------------------------------------------------------
# measurements
# -------------------------------------------------------------------------


@measurements_app.command("get")
def measurements_get(ctx: typer.Context, device_id: DeviceIdArgument, as_json: JsonOption = False) -> None:
    """Get measurements for device."""
    store = _require_auth(ctx)
    data = _run(store, "Fetching measurements...", lambda api: api.get_measurements(device_id))
    if as_json:
        print_json(console, data)
        return
    print_table(console, data, METER_VALUE_COLUMNS)


@measurements_app.command("realtime")
def measurements_realtime(ctx: typer.Context, device_id: DeviceIdArgument, as_json: JsonOption = False) -> None:
    """Get realtime measurements."""
    store = _require_auth(ctx)
    payload = _run(store, "Fetching realtime data...", lambda api: api.get_realtime_measurements(device_id))
    if as_json:
        print_json(console, payload)
        return
    data = _record(payload)
    print_details(
        console,
        "Realtime Measurements",
        [
            ("Active Power", measure(data.get("ActivePower"), "W")),
            ("Voltage", measure(data.get("Voltage"), "V")),
            ("Current", measure(data.get("Current"), "A")),
        ],
    )


@measurements_app.command("history")
def measurements_history(
    ctx: typer.Context,
    device_id: DeviceIdArgument,
    start: Annotated[str, typer.Option("--start", metavar="DATE", help="Start date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", metavar="DATE", help="End date (YYYY-MM-DD)")],
    as_json: JsonOption = False,
) -> None:
    """Get historical measurements."""
    store = _require_auth(ctx)
    data = _run(
        store,
        "Fetching historical data...",
        lambda api: api.get_historical_data(device_id, start, end),
    )
    if as_json:
        print_json(console, data)
        return
    print_table(console, data, METER_VALUE_COLUMNS)


# -------------------------------------------------------------------------
# actions
# -------------------------------------------------------------------------


@actions_app.command("switch")
def actions_switch(
    ctx: typer.Context,
    device_id: DeviceIdArgument,
    state: Annotated[str, typer.Argument(metavar="STATE", help="on/off, 1/0 or true/false")],
) -> None:
    """Switch device on/off."""
    store = _require_auth(ctx)
    is_on = parse_switch_state(state)
    label = "on" if is_on else "off"
    _run(store, f"Switching device {label}...", lambda api: api.switch_device(device_id, is_on))
    print_success(console, f"Device switched {label}")


@actions_app.command("set")
def actions_set(
    ctx: typer.Context,
    device_id: DeviceIdArgument,
    assignments: Annotated[list[str], typer.Argument(metavar="KEY=VALUE...", help="Values to send")],
    as_json: JsonOption = False,
) -> None:
    """Send values for a device (addressed by serial number)."""
    store = _require_auth(ctx)
    values = parse_assignments(assignments)
    payload = _run(store, "Sending values...", lambda api: api.set_device_values(device_id, values))
    if as_json:
        print_json(console, payload)
        return
    print_success(console, f"Sent {len(values)} value(s) to device {device_id}")


# -------------------------------------------------------------------------
# user
# -------------------------------------------------------------------------


@user_app.command("info")
def user_info(ctx: typer.Context, as_json: JsonOption = False) -> None:
    """Get user information."""
    store = _require_auth(ctx)
    payload = _run(store, "Fetching user info...", lambda api: api.get_user_info())
    if as_json:
        print_json(console, payload)
        return
    user = _record(payload)
    print_details(
        console,
        "User Information",
        [
            ("Username", text_or_na(user.get("Username"))),
            ("Email", text_or_na(user.get("Email"))),
        ],
    )


@user_app.command("tokens")
def user_tokens(ctx: typer.Context, as_json: JsonOption = False) -> None:
    """List access tokens."""
    store = _require_auth(ctx)
    tokens = _run(store, "Fetching tokens...", lambda api: api.list_access_tokens())
    if as_json:
        print_json(console, tokens)
        return
    print_table(console, tokens, TOKEN_COLUMNS)
