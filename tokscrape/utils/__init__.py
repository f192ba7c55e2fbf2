from tokscrape.utils.logging import UTCFormatter, setup_logging
from tokscrape.utils.retry import RetryPolicy, retry_async

__all__ = [
    "RetryPolicy",
    "UTCFormatter",
    "retry_async",
    "setup_logging",
]
