"""Run the facade with uvicorn using the configured listen address."""

from __future__ import annotations

import uvicorn

from .config import get_server_config


def main() -> None:
    listen = get_server_config().listen
    uvicorn.run(
        "ledger_auction.main:app",
        host=str(listen.get("host", "0.0.0.0")),
        port=int(listen.get("port", 8080)),
    )


if __name__ == "__main__":
    main()
