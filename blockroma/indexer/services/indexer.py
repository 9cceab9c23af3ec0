import asyncio
import logging
from functools import partial
from typing import Any, Optional, Sequence

import mode

from blockroma import settings
from blockroma.common.rpc import NodeClient
from blockroma.common.structs import RootRange
from blockroma.common.worker import shutdown_root_worker
from blockroma.indexer.catchup import CatchupScheduler
from blockroma.indexer.database import MainDB
from blockroma.indexer.importer import Importer
from blockroma.indexer.realtime import RealtimeFollower
from blockroma.indexer.state import IndexerState

logger = logging.getLogger(__name__)


class IndexerService(mode.Service):
    def __init__(self,
                 state: IndexerState,
                 root_ranges: Sequence[RootRange] = (),
                 catchup: bool = settings.CATCHUP_ENABLED,
                 realtime: bool = settings.REALTIME_ENABLED,
                 batch_size: int = settings.CATCHUP_BATCH_SIZE,
                 queue_size: int = settings.REALTIME_QUEUE_SIZE,
                 main_db: Optional[MainDB] = None,
                 client: Optional[NodeClient] = None,
                 **kwargs: Any) -> None:
        self.main_db = main_db or MainDB(settings.BLOCKROMA_MAIN_DB)
        self.client = client or NodeClient()
        self.importer = Importer(main_db=self.main_db, client=self.client, state=state)

        self.catchup: Optional[CatchupScheduler] = None
        if catchup:
            self.catchup = CatchupScheduler(self.importer, root_ranges, batch_size)

        self.realtime: Optional[RealtimeFollower] = None
        if realtime:
            self.realtime = RealtimeFollower(self.importer, queue_size)

        super(IndexerService, self).__init__(**kwargs)

    async def on_start(self) -> None:
        await self.main_db.connect()
        await self.client.connect()

    async def on_stop(self) -> None:
        if self.catchup is not None:
            self.catchup.stop()

        if self.realtime is not None:
            await self.realtime.stop()

        await self.client.disconnect()
        await self.main_db.disconnect()

    async def on_started(self) -> None:
        task = asyncio.ensure_future(self.indexer())
        task.add_done_callback(partial(shutdown_root_worker, service=self))

    async def indexer(self) -> None:
        if self.catchup is None and self.realtime is None:
            logger.warning('Both catchup and realtime are disabled, nothing to do')
            return

        if self.realtime is not None:
            self.realtime.start()

        if self.catchup is not None:
            await self.catchup.run()

        if self.realtime is not None:
            await self.realtime.wait()
