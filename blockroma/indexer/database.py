import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from aiopg.sa import SAConnection
from sqlalchemy import Table, and_, or_
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.schema import CreateIndex, CreateTable
from sqlalchemy.sql import ClauseElement

from blockroma.common.db import DBWrapper
from blockroma.common.tables import TABLES, addresses_t, blocks_t, token_transfers_t, tokens_t, transactions_t
from blockroma.common.utils import timeit
from blockroma.indexer.structs import AddressRecord, FetchedRange, TokenRecord
from blockroma.utils import split

MAIN_DB_POOL_SIZE = 5
INSERT_BATCH_SIZE = 500

logger = logging.getLogger(__name__)

MISSING_BLOCK_NUMBERS_QUERY = """
SELECT n AS number
FROM generate_series(%s::bigint, %s::bigint) AS n
WHERE NOT EXISTS (
    SELECT 1 FROM blocks WHERE blocks.number = n AND blocks.consensus = true
)
ORDER BY n
"""


def to_row(record: Any) -> Dict[str, Any]:
    row = record._asdict()
    if 'status' in row and row['status'] is not None:
        row['status'] = int(row['status'])
    return row


def row_to_token(row: Dict[str, Any]) -> TokenRecord:
    return TokenRecord(
        contract_address=bytes(row['contract_address']),
        type=row['type'],
        name=row['name'],
        symbol=row['symbol'],
        decimals=row['decimals'],
        total_supply=row['total_supply'],
        skip_metadata=row['skip_metadata'],
    )


def get_insert_ignore_query(
        table: Table,
        rows: Sequence[Dict[str, Any]],
        index_elements: Optional[List[str]] = None,
) -> ClauseElement:
    """
    Without `index_elements` a conflict on any unique index is ignored.
    """
    return insert(table).values(list(rows)).on_conflict_do_nothing(index_elements=index_elements)


def get_insert_addresses_query(hashes: Sequence[bytes]) -> ClauseElement:
    rows = [{'hash': address_hash} for address_hash in hashes]
    return get_insert_ignore_query(addresses_t, rows, index_elements=['hash'])


def get_update_address_balance_query(address: AddressRecord) -> ClauseElement:
    """
    Writes the balance only when it was observed at a later block than the
    stored one.
    """
    block_number = addresses_t.c.fetched_coin_balance_block_number
    return addresses_t.update() \
        .values(
            fetched_coin_balance=address.fetched_coin_balance,
            fetched_coin_balance_block_number=address.fetched_coin_balance_block_number,
        ) \
        .where(
            and_(
                addresses_t.c.hash == address.hash,
                or_(
                    block_number.is_(None),
                    block_number < address.fetched_coin_balance_block_number,
                )
            )
        )


def get_upsert_tokens_query(tokens: Sequence[TokenRecord]) -> ClauseElement:
    query = insert(tokens_t).values([to_row(token) for token in tokens])
    return query.on_conflict_do_update(
        index_elements=['contract_address'],
        set_={
            'type': query.excluded.type,
            'name': query.excluded.name,
            'symbol': query.excluded.symbol,
            'decimals': query.excluded.decimals,
            'total_supply': query.excluded.total_supply,
            'skip_metadata': query.excluded.skip_metadata,
        }
    )


class MainDB(DBWrapper):
    """
    Blockroma main db wrapper
    """
    pool_size = MAIN_DB_POOL_SIZE

    @timeit('[MAIN DB] Get missing block numbers')
    async def get_missing_block_numbers(self, start: int, end: int) -> List[int]:
        rows = await self.fetch_all(MISSING_BLOCK_NUMBERS_QUERY, start, end)
        return [row['number'] for row in rows]

    async def get_tokens(self, addresses: Iterable[bytes]) -> Dict[bytes, TokenRecord]:
        addresses = list(addresses)
        if not addresses:
            return {}

        query = tokens_t.select().where(tokens_t.c.contract_address.in_(addresses))
        rows = await self.fetch_all(query)
        tokens = [row_to_token(row) for row in rows]
        return {token.contract_address: token for token in tokens}

    async def insert_ignore(
            self,
            connection: SAConnection,
            table: Table,
            records: Sequence[Any],
            index_elements: Optional[List[str]] = None,
    ) -> None:
        for chunk in split(records, INSERT_BATCH_SIZE):
            rows = [to_row(record) for record in chunk]
            await connection.execute(get_insert_ignore_query(table, rows, index_elements))

    async def write_addresses(self, connection: SAConnection, addresses: Sequence[AddressRecord]) -> None:
        hashes = sorted(address.hash for address in addresses)
        for chunk in split(hashes, INSERT_BATCH_SIZE):
            await connection.execute(get_insert_addresses_query(chunk))

        # rows are locked in the same order by concurrent writers
        for address in sorted(addresses, key=lambda item: item.hash):
            if not address.is_balance_known:
                continue
            await connection.execute(get_update_address_balance_query(address))

    async def write_tokens(self, connection: SAConnection, tokens: Sequence[TokenRecord]) -> None:
        tokens = sorted(tokens, key=lambda item: item.contract_address)
        for chunk in split(tokens, INSERT_BATCH_SIZE):
            await connection.execute(get_upsert_tokens_query(chunk))

    @timeit('[MAIN DB] Write range')
    async def write_range(self, fetched: FetchedRange) -> None:
        """
        Persists everything fetched for one block range in one transaction.
        """
        async with self.transaction() as connection:
            # a block is ignored when its hash or its number is already stored
            await self.insert_ignore(connection, blocks_t, fetched.blocks)
            await self.insert_ignore(connection, transactions_t, fetched.transactions, index_elements=['hash'])
            await self.write_addresses(connection, fetched.addresses)
            await self.write_tokens(connection, fetched.tokens)
            await self.insert_ignore(
                connection,
                token_transfers_t,
                fetched.token_transfers,
                index_elements=['transaction_hash', 'log_index'],
            )

        logger.debug('Range has been written', extra=fetched.stats())

    async def create_tables(self) -> None:
        async with self.transaction() as connection:
            for table in TABLES:
                await connection.execute(CreateTable(table, if_not_exists=True))
                for index in sorted(table.indexes, key=lambda item: str(item.name)):
                    await connection.execute(CreateIndex(index, if_not_exists=True))

                logger.info('Table is ready', extra={'table': table.name})
