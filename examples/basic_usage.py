"""Basic usage example for the pysmartme library."""

import asyncio

from pysmartme import ConfigStore, SmartMeAPI, SmartMeError


async def main() -> None:
    """List devices, read realtime values and switch one device."""
    # Uses ~/.config/smartme-cli/config.json, shared with the smartme command
    store = ConfigStore()
    if not store.is_configured():
        print("Run 'smartme config set --api-key <key>' first")
        return

    async with SmartMeAPI(store=store) as api:
        devices = await api.list_devices()
        print(f"Found {len(devices)} device(s)")

        for device in devices:
            print(f"\nDevice: {device.get('Name')}")
            print(f"  ID: {device.get('Id')}")
            print(f"  Serial: {device.get('Serial')}")
            print(f"  Power: {device.get('ActivePower')} W")

        if not devices:
            return

        serial = devices[0].get("Serial")
        realtime = await api.get_realtime_measurements(serial)
        print(f"\nRealtime voltage for {serial}: {realtime.get('Voltage')} V")

        try:
            await api.switch_device(serial, True)
            print(f"Switched {serial} on")
        except SmartMeError as err:
            print(f"Could not switch {serial}: {err} ({err.kind})")


if __name__ == "__main__":
    asyncio.run(main())
