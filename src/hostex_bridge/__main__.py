"""Entrypoint: python -m hostex_bridge"""
from __future__ import annotations

import logging

import uvicorn

from hostex_bridge.api.middleware.request_id import RequestIdFilter


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())
    uvicorn.run(
        "hostex_bridge.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=29337,
        log_level="info",
        log_config=None,
    )


if __name__ == "__main__":
    main()
