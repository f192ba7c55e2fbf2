from tokscrape.services.data_service import DataService
from tokscrape.services.storage import ResultStorage

__all__ = [
    "DataService",
    "ResultStorage",
]
