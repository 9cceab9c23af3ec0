import asyncio
import logging

import click
from click import Context

from blockroma import settings
from blockroma.common import logs
from blockroma.indexer.cli import indexer
from blockroma.indexer.database import MainDB
from blockroma.structs import AppConfig

logger = logging.getLogger(__name__)


@click.group()
@click.option('--log-level', envvar='LOG_LEVEL', default=settings.LOG_LEVEL, help="Log level")
@click.option('--no-json-formatter', is_flag=True, envvar='NO_JSON_FORMATTER', default=settings.NO_JSON_FORMATTER,
              help='Use default formatter')
@click.pass_context
def cli(ctx: Context, log_level: str, no_json_formatter: bool) -> None:
    ctx.obj = AppConfig(log_level, no_json_formatter)


async def _create_tables(dsn: str) -> None:
    async with MainDB(dsn) as main_db:
        await main_db.create_tables()


@click.command('create-tables')
@click.option('--db', envvar='BLOCKROMA_MAIN_DB', default=settings.BLOCKROMA_MAIN_DB, help="Main database DSN")
@click.pass_obj
def create_tables(config: AppConfig, db: str) -> None:
    """
    Creates MainDB tables and indexes which don't exist yet
    """
    logs.configure(
        log_level=config.log_level,
        formatter_class=logs.select_formatter_class(config.no_json_formatter),
    )
    asyncio.run(_create_tables(db))


cli.add_command(indexer)
cli.add_command(create_tables)
