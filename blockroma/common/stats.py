import asyncio
import logging
from typing import Optional

from aiopg.sa import Engine

from blockroma import settings
from blockroma.common import prom_metrics, utils
from blockroma.common.db import fetch_one
from blockroma.common.rpc import NodeClient
from blockroma.common.structs import DbStats, LoopStats, NodeStats

logger = logging.getLogger(__name__)


async def get_db_stats(engine: Optional[Engine]) -> DbStats:
    is_healthy = False

    try:
        if engine is not None:
            await fetch_one(engine, 'SELECT 1')
            is_healthy = True
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning('Cannot check the database', extra={'exception': repr(e)})

    return DbStats(is_healthy=is_healthy)


async def get_node_stats(client: NodeClient) -> NodeStats:
    is_healthy = False

    try:
        await client.get_block_number()
        is_healthy = True
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning('Cannot check the node', extra={'exception': repr(e)})

    return NodeStats(is_healthy=is_healthy)


async def get_loop_stats() -> LoopStats:
    tasks_count = utils.get_loop_tasks_count()

    return LoopStats(
        is_healthy=tasks_count < settings.HEALTH_LOOP_TASKS_COUNT_THRESHOLD,
    )


def setup_indexer_metrics() -> None:
    prom_metrics.METRIC_INDEXER_LOOP_TASKS_TOTAL.set_function(lambda: utils.get_loop_tasks_count())
