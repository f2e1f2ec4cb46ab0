"""Entry point for running cardbooth as a module."""

import logging
import sys

import uvicorn

from cardbooth.config import settings


def main() -> int:
    """Run the cardbooth server."""
    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Queue and session state live in process memory, so a single worker only
    uvicorn.run(
        "cardbooth.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
