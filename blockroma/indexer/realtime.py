import asyncio
import logging
from typing import Optional

from blockroma import settings
from blockroma.common.prom_metrics import METRIC_REALTIME_QUEUE_SIZE
from blockroma.common.structs import BlockRange
from blockroma.indexer.importer import Importer

logger = logging.getLogger(__name__)


class RealtimeFollower:
    """
    Imports new blocks as the node announces them.

    Notifications go through a bounded queue with a single consumer, so
    blocks are imported one at a time in the order they were announced and a
    slow import pauses the polling.
    """

    def __init__(self, importer: Importer, queue_size: int = settings.REALTIME_QUEUE_SIZE) -> None:
        self.importer = importer
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)

        self.producer: Optional[asyncio.Task] = None
        self.consumer: Optional[asyncio.Task] = None

    async def on_new_block(self, number: int) -> None:
        await self.queue.put(number)
        self.report_queue_size()

    def report_queue_size(self) -> None:
        size = self.queue.qsize()
        METRIC_REALTIME_QUEUE_SIZE.set(size)
        self.importer.state.realtime_queue_size = size

    async def consume(self) -> None:
        while True:
            number = await self.queue.get()
            try:
                self.report_queue_size()
                await self.importer.import_range(BlockRange(number, number))
            finally:
                self.queue.task_done()

    def start(self) -> None:
        logger.info('Starting realtime follower', extra={'queue_size': self.queue.maxsize})

        self.consumer = asyncio.ensure_future(self.consume())
        self.producer = self.importer.client.subscribe(self.on_new_block)

    async def stop(self) -> None:
        logger.info('Stopping realtime follower', extra={'pending': self.queue.qsize()})

        tasks = [task for task in (self.producer, self.consumer) if task is not None]
        for task in tasks:
            task.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        self.producer = self.consumer = None

    async def wait(self) -> None:
        """
        Blocks until the producer or the consumer is done, re-raises its error.
        """
        tasks = [task for task in (self.producer, self.consumer) if task is not None]
        if not tasks:
            return

        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
