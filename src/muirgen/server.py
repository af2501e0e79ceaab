"""Process entry point for the vessel console API."""

import logging
import sys

import uvicorn

from .config import settings

logger = logging.getLogger(__name__)


def _fatal(exc_type, exc, tb) -> None:
    # The interpreter exits non-zero after this hook; the supervisor restarts it.
    logger.critical("uncaught exception, exiting", exc_info=(exc_type, exc, tb))


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.excepthook = _fatal
    logger.info("starting API on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(
        "muirgen.api:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
