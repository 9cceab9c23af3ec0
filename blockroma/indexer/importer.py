import asyncio
import logging
import time
from typing import Optional

from blockroma.common.processing.tokens import enrich_tokens
from blockroma.common.prom_metrics import (
    METRIC_IMPORTER_BLOCKS_TOTAL,
    METRIC_IMPORTER_LAST_BLOCK,
    METRIC_IMPORTER_RANGE_DURATION,
    METRIC_IMPORTER_RANGES_TOTAL,
)
from blockroma.common.rpc import NodeClient
from blockroma.common.structs import BlockRange
from blockroma.common.utils import timeit
from blockroma.indexer.database import MainDB
from blockroma.indexer.fetcher import RangeFetcher
from blockroma.indexer.state import IndexerState
from blockroma.indexer.structs import FetchedRange

logger = logging.getLogger(__name__)


class Importer:
    """
    Fetches a block range from the node and persists it atomically.

    A range either lands in the database as a whole or not at all: any
    failure drops it and the blocks show up as a gap on the next catchup run.
    """

    def __init__(self, main_db: MainDB, client: NodeClient, state: Optional[IndexerState] = None) -> None:
        self.main_db = main_db
        self.client = client
        self.fetcher = RangeFetcher(client)
        self.state = state or IndexerState(started_at=int(time.time()))

    async def fetch(self, block_range: BlockRange) -> FetchedRange:
        fetched = await self.fetcher.fetch_range(block_range)

        stored_tokens = await self.main_db.get_tokens(token.contract_address for token in fetched.tokens)
        tokens = await enrich_tokens(self.client, fetched.tokens, stored_tokens)

        return fetched._replace(tokens=tokens)

    @timeit('[IMPORTER] Import range')
    async def import_range(self, block_range: BlockRange) -> bool:
        logger.info('Importing range', extra={'range': str(block_range)})

        started_at = time.perf_counter()
        try:
            fetched = await self.fetch(block_range)
            await self.main_db.write_range(fetched)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.error('Range import has failed, range is dropped', extra={'range': str(block_range)}, exc_info=True)
            METRIC_IMPORTER_RANGES_TOTAL.labels('dropped').inc()
            self.state.drop()
            return False

        METRIC_IMPORTER_RANGE_DURATION.observe(time.perf_counter() - started_at)
        METRIC_IMPORTER_RANGES_TOTAL.labels('imported').inc()
        METRIC_IMPORTER_BLOCKS_TOTAL.inc(len(fetched.blocks))

        last_block = max((block.number for block in fetched.blocks), default=None)
        self.state.update(last_block, len(fetched.blocks))
        if self.state.last_imported_block is not None:
            METRIC_IMPORTER_LAST_BLOCK.set(self.state.last_imported_block)

        logger.info('Range has been imported', extra={'range': str(block_range), **fetched.stats()})
        return True
