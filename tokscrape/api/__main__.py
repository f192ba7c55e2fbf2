"""Run the HTTP API under uvicorn."""

import uvicorn

from tokscrape.config import get_settings
from tokscrape.utils.logging import setup_logging


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "tokscrape.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
