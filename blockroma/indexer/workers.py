import logging
import time
from typing import Sequence

from blockroma.common import worker
from blockroma.common.structs import RootRange
from blockroma.indexer import services
from blockroma.indexer.state import IndexerState

logger = logging.getLogger(__name__)


def run_worker(
        root_ranges: Sequence[RootRange],
        api_port: int,
        catchup: bool,
        realtime: bool,
        batch_size: int,
        queue_size: int,
) -> None:
    state = IndexerState(started_at=int(time.time()))

    indexer = services.IndexerService(
        state=state,
        root_ranges=root_ranges,
        catchup=catchup,
        realtime=realtime,
        batch_size=batch_size,
        queue_size=queue_size,
    )
    api_worker = services.ApiService(port=api_port, state=state, main_db=indexer.main_db, client=indexer.client)
    indexer.add_dependency(api_worker)

    worker.Worker(indexer).execute_from_commandline()
