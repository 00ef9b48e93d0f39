from __future__ import annotations

import uvicorn

from bookgraph.settings import configure_logging, settings

from .app import create_app


def main() -> None:
    configure_logging()
    uvicorn.run(
        create_app(),
        host=settings.bind_host,
        port=settings.bind_port,
        log_level=(settings.log_level or "info").lower(),
    )


if __name__ == "__main__":
    main()
