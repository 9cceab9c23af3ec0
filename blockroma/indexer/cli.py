import logging

import click

from blockroma import settings
from blockroma.common import logs, stats
from blockroma.indexer.workers import run_worker
from blockroma.structs import AppConfig
from blockroma.utils import parse_ranges

logger = logging.getLogger(__name__)


@click.command()
@click.option('-r', '--block-ranges', envvar='CATCHUP_BLOCK_RANGES', default=settings.CATCHUP_BLOCK_RANGES,
              help="Comma separated block ranges to catch up, e.g. 0-latest")
@click.option('--catchup/--no-catchup', envvar='CATCHUP_ENABLED', default=settings.CATCHUP_ENABLED)
@click.option('--realtime/--no-realtime', envvar='REALTIME_ENABLED', default=settings.REALTIME_ENABLED)
@click.option('-b', '--batch-size', type=int, envvar='CATCHUP_BATCH_SIZE', default=settings.CATCHUP_BATCH_SIZE)
@click.option('-q', '--queue-size', type=int, envvar='REALTIME_QUEUE_SIZE', default=settings.REALTIME_QUEUE_SIZE)
@click.option('-p', '--port', type=int, envvar='INDEXER_API_PORT', default=settings.INDEXER_API_PORT)
@click.pass_obj
def indexer(
        config: AppConfig,
        block_ranges: str,
        catchup: bool,
        realtime: bool,
        batch_size: int,
        queue_size: int,
        port: int,
) -> None:
    """
    Service to import blocks from the chain node to MainDB
    """
    stats.setup_indexer_metrics()
    logs.configure(
        log_level=config.log_level,
        formatter_class=logs.select_formatter_class(config.no_json_formatter),
    )

    if batch_size < 1:
        raise click.BadParameter('Batch size should be positive', param_hint='--batch-size')

    try:
        root_ranges = parse_ranges(block_ranges) if catchup else []
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--block-ranges')

    if catchup and not root_ranges:
        raise click.BadParameter('Catchup requires at least one block range', param_hint='--block-ranges')

    logger.info(
        'Starting indexer',
        extra={
            'catchup': catchup,
            'realtime': realtime,
            'ranges': [str(root_range) for root_range in root_ranges],
            'batch_size': batch_size,
        }
    )
    run_worker(root_ranges, port, catchup, realtime, batch_size, queue_size)
