"""API server entry point."""

from __future__ import annotations

import uvicorn

from flowpieces.common.settings import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "flowpieces.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
