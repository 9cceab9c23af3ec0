import copy
from typing import Any, Dict, Iterable, List

import pytest

from blockroma.common.db import DatabaseError
from blockroma.indexer.structs import (
    AddressRecord,
    BlockRecord,
    FetchedRange,
    TokenRecord,
    TokenTransferRecord,
    TransactionRecord,
)


class FakeMainDB:
    """
    In-memory `MainDB` with the same conflict rules as the SQL it builds.

    `write_range` applies a range to copies of the tables and swaps them in
    only when nothing has failed, like a database transaction does.
    """

    def __init__(self) -> None:
        self.engine = None

        self.blocks: Dict[bytes, BlockRecord] = {}
        self.transactions: Dict[bytes, TransactionRecord] = {}
        self.addresses: Dict[bytes, AddressRecord] = {}
        self.tokens: Dict[bytes, TokenRecord] = {}
        self.token_transfers: Dict[Any, TokenTransferRecord] = {}

        self.fail_on_write = False
        self.writes = 0

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def get_missing_block_numbers(self, start: int, end: int) -> List[int]:
        stored = {block.number for block in self.blocks.values() if block.consensus}
        return [number for number in range(start, end + 1) if number not in stored]

    async def get_tokens(self, addresses: Iterable[bytes]) -> Dict[bytes, TokenRecord]:
        return {address: self.tokens[address] for address in addresses if address in self.tokens}

    def add_blocks(self, *numbers: int) -> None:
        for number in numbers:
            block_hash = number.to_bytes(32, 'big')
            self.blocks[block_hash] = BlockRecord(
                hash=block_hash,
                number=number,
                parent_hash=max(number - 1, 0).to_bytes(32, 'big'),
                miner=b'\x00' * 20,
                difficulty=0,
                total_difficulty=None,
                gas_limit=0,
                gas_used=0,
                base_fee_per_gas=None,
                size=None,
                nonce=b'\x00' * 8,
                timestamp=0,
                consensus=True,
                is_empty=True,
            )

    async def write_range(self, fetched: FetchedRange) -> None:
        blocks = dict(self.blocks)
        transactions = dict(self.transactions)
        addresses = copy.copy(self.addresses)
        tokens = dict(self.tokens)
        token_transfers = dict(self.token_transfers)

        canonical = {block.number for block in blocks.values() if block.consensus}
        for block in fetched.blocks:
            if block.hash in blocks or block.number in canonical:
                continue
            blocks[block.hash] = block
            canonical.add(block.number)

        for tx in fetched.transactions:
            transactions.setdefault(tx.hash, tx)

        for address in fetched.addresses:
            stored = addresses.setdefault(address.hash, AddressRecord(address.hash, None, None))
            if not address.is_balance_known:
                continue

            stored_block = stored.fetched_coin_balance_block_number
            if stored_block is None or stored_block < address.fetched_coin_balance_block_number:
                addresses[address.hash] = address

        for token in fetched.tokens:
            tokens[token.contract_address] = token

        for transfer in fetched.token_transfers:
            token_transfers.setdefault((transfer.transaction_hash, transfer.log_index), transfer)

        if self.fail_on_write:
            raise DatabaseError('Connection is lost')

        self.blocks = blocks
        self.transactions = transactions
        self.addresses = addresses
        self.tokens = tokens
        self.token_transfers = token_transfers
        self.writes += 1


@pytest.fixture
def main_db() -> FakeMainDB:
    return FakeMainDB()
