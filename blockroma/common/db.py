import asyncio
import contextlib
import logging
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Union

import aiopg.sa
import async_timeout
import backoff
import psycopg2
from aiopg.sa import Engine, SAConnection
from aiopg.sa.result import ResultProxy
from psycopg2.extras import DictCursor
from sqlalchemy.dialects.postgresql import dialect
from sqlalchemy.sql import ClauseElement

from blockroma import settings

TIMEOUT = 60
POOL_SIZE = 10

logger = logging.getLogger(__name__)

Executor = Union[Engine, SAConnection]
Query = Union[ClauseElement, str]


class DatabaseError(Exception):
    pass


def compile_query(query: Query) -> str:
    if isinstance(query, ClauseElement):
        return str(query.compile(dialect=dialect(), compile_kwargs={"literal_binds": True}))
    return query


@contextlib.asynccontextmanager
async def acquire_connection(executor: Executor) -> AsyncGenerator[SAConnection, None]:
    if isinstance(executor, Engine):
        connection = await executor.acquire()
    else:
        connection = executor

    try:
        yield connection
    finally:
        if isinstance(executor, Engine):
            executor.release(connection)


def query_timeout(func: Callable[..., Any]) -> Callable[..., Any]:
    async def _wrapper(executor: Executor, query: Query, *params) -> Any:
        assert query is not None, "Query can't be empty"

        timeout = settings.QUERY_TIMEOUT
        try:
            async with async_timeout.timeout(timeout):
                return await func(executor, query, *params)
        except asyncio.TimeoutError:
            logger.error(
                'Query exceeds time limits',
                extra={
                    'timeout': timeout,
                    'query': compile_query(query),
                    'params': params,
                }
            )
            raise

    return _wrapper


def db_retry(func: Callable[..., Any]) -> Callable[..., Any]:
    return backoff.on_exception(
        backoff.fibo,
        psycopg2.OperationalError,
        max_tries=lambda: settings.DB_BACKOFF_MAX_TRIES,
    )(func)


@db_retry
@query_timeout
async def execute(executor: Executor, query: Query, *params: Any) -> ResultProxy:
    async with acquire_connection(executor) as connection:
        return await connection.execute(query, params)


@db_retry
@query_timeout
async def fetch_all(executor: Executor, query: Query, *params: Any) -> List[Dict[str, Any]]:
    async with acquire_connection(executor) as connection:
        cursor = await connection.execute(query, params)
        results = await cursor.fetchall()
    return [dict(item) for item in results]


@db_retry
@query_timeout
async def fetch_one(executor: Executor, query: Query, *params: Any) -> Optional[Dict[str, Any]]:
    async with acquire_connection(executor) as connection:
        cursor = await connection.execute(query, params)
        result = await cursor.fetchone()

    return dict(result) if result else None


class DbActionsMixin:
    engine: Optional[Engine]

    async def execute(self, query: Query, *params) -> ResultProxy:
        return await execute(self.engine, query, *params)

    async def fetch_all(self, query: Query, *params) -> List[Dict[str, Any]]:
        return await fetch_all(self.engine, query, *params)

    async def fetch_one(self, query: Query, *params) -> Optional[Dict[str, Any]]:
        return await fetch_one(self.engine, query, *params)

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncGenerator[SAConnection, None]:
        """
        Yields a connection with an open transaction, it is committed on exit
        and rolled back on any exception.
        """
        if self.engine is None:
            raise DatabaseError('Database is not connected')

        async with self.engine.acquire() as connection:
            async with connection.begin():
                yield connection


class DBWrapper(DbActionsMixin):
    connection_string: str

    pool_size: int = POOL_SIZE
    timeout: int = TIMEOUT

    def __init__(self, connection_string: str, **params: Any) -> None:
        self.connection_string = connection_string
        self.params = params
        self.engine = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.disconnect()
        if any(exc_info):
            return False

    async def connect(self) -> None:
        self.engine = await aiopg.sa.create_engine(
            self.connection_string,
            minsize=1,
            maxsize=self.pool_size,
            timeout=self.timeout,
            cursor_factory=DictCursor,
            **self.params
        )

    async def disconnect(self) -> None:
        if self.engine is not None:
            self.engine.close()
            await self.engine.wait_closed()
            self.engine = None

