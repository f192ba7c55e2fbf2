"""Log setup shared by the CLI and the API server."""

import logging
from datetime import datetime, timezone

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class UTCFormatter(logging.Formatter):
    """Formats log timestamps in UTC so CLI, API and stored timestamps line up."""

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def setup_logging(level: str = "INFO") -> None:
    """Install a single stream handler with the UTC formatter on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(UTCFormatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # asyncio and aiohttp are chatty at DEBUG
    for noisy in ("asyncio", "aiohttp"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.INFO))
