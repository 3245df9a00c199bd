"""Example sharing an application-managed aiohttp session with SmartMeAPI."""

import asyncio
from pathlib import Path

from aiohttp import ClientSession

from pysmartme import ConfigStore, SmartMeAPI


async def main() -> None:
    """Run the client on a session it does not own."""
    # A private config file keeps this example away from the CLI's credentials
    store = ConfigStore(Path("example-config.json"))
    store.set("apiKey", "your-api-key")

    async with ClientSession() as session:
        client = SmartMeAPI(store=store, session=session)

        async with client:
            user = await client.get_user_info()
            print(f"Logged in as {user.get('Username')}")

        # The injected session is left open for the application
        print(f"Session closed: {session.closed}")


if __name__ == "__main__":
    asyncio.run(main())
