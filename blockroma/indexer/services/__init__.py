from blockroma.indexer.services.api import ApiService
from blockroma.indexer.services.indexer import IndexerService

__all__ = (
    'ApiService',
    'IndexerService',
)
