import logging
from typing import List, Sequence

from blockroma.common.structs import BlockRange, RootRange
from blockroma.indexer.importer import Importer
from blockroma.indexer.ranges import chunk_ranges, missing_block_ranges

logger = logging.getLogger(__name__)


class CatchupScheduler:
    """
    Backfills configured block ranges.

    `latest` is resolved once, when the run starts, and every root range is
    imported chunk by chunk in order.
    """

    def __init__(self, importer: Importer, root_ranges: Sequence[RootRange], batch_size: int) -> None:
        if batch_size < 1:
            raise ValueError(f'Batch size should be positive, got {batch_size}')

        self.importer = importer
        self.root_ranges = list(root_ranges)
        self.batch_size = batch_size
        self._running = False

    @property
    def main_db(self):
        return self.importer.main_db

    @property
    def client(self):
        return self.importer.client

    async def resolve_ranges(self) -> List[BlockRange]:
        if any(root_range.has_latest for root_range in self.root_ranges):
            latest = await self.client.get_block_number()
            logger.info('Latest block is resolved', extra={'latest': latest})
        else:
            latest = 0

        return [root_range.resolve(latest) for root_range in self.root_ranges]

    async def run_range(self, block_range: BlockRange) -> None:
        gaps = await missing_block_ranges(self.main_db, block_range.start, block_range.end)
        chunks = chunk_ranges(gaps, self.batch_size)

        logger.info(
            'Catching up the range',
            extra={'range': str(block_range), 'gaps': len(gaps), 'chunks': len(chunks)},
        )

        for chunk in chunks:
            if not self._running:
                logger.info('Catchup has been stopped', extra={'range': str(block_range)})
                return

            await self.importer.import_range(chunk)

        logger.info('Range has been caught up', extra={'range': str(block_range)})

    async def run(self) -> None:
        self._running = True
        try:
            for block_range in await self.resolve_ranges():
                if not self._running:
                    break

                self.importer.state.catchup_range = block_range
                await self.run_range(block_range)
        finally:
            self.importer.state.catchup_range = None
            self._running = False

    def stop(self) -> None:
        self._running = False
