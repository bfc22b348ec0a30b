from __future__ import annotations

import asyncio
import sys

from noteflow.core.exceptions import RemoteError
from noteflow.core.settings import get_settings
from noteflow.gateway import HttpGateway


async def probe() -> bool:
    gateway = HttpGateway(get_settings())
    try:
        await gateway.get_users()
        return True
    except RemoteError as exc:
        print(exc, file=sys.stderr)
        return False
    finally:
        await gateway.aclose()


def main() -> None:
    sys.exit(0 if asyncio.run(probe()) else 1)


if __name__ == "__main__":
    main()
