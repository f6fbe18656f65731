"""
Process entrypoint.

`app` is the ASGI application uvicorn workers import; `main()` runs uvicorn
with the host, port and worker count from the environment.
"""

import logging
import sys

import uvicorn

from src.api.main import create_app

logger = logging.getLogger("cdn_storage.server")

app = create_app()


# PUBLIC_INTERFACE
def main() -> None:
    settings = app.state.settings
    logger.info("Starting CDN storage on http://%s:%d (%d workers)", settings.host, settings.port, settings.workers)
    try:
        if settings.workers > 1:
            uvicorn.run("src.api.server:app", host=settings.host, port=settings.port, workers=settings.workers)
        else:
            uvicorn.run(app, host=settings.host, port=settings.port)
    except Exception:
        logger.exception("CDN storage failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
