import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from blockroma.common.hex import bytes_to_hex
from blockroma.common.rpc import NodeClient
from blockroma.indexer.structs import AddressRecord, TokenTransferRecord

logger = logging.getLogger(__name__)


class AddressWatermarks:
    """
    Highest block number each address was touched at during one range fetch.

    >>> watermarks = AddressWatermarks()
    >>> watermarks.observe(b'a', 10)
    >>> watermarks.observe(b'a', 5)
    >>> watermarks.observe(None, 7)
    >>> watermarks[b'a']
    10
    """

    def __init__(self) -> None:
        self._blocks: Dict[bytes, int] = {}

    def observe(self, address: Optional[bytes], block_number: int) -> None:
        if not address:
            return

        if self._blocks.get(address, -1) < block_number:
            self._blocks[address] = block_number

    def observe_transfer(self, transfer: TokenTransferRecord) -> None:
        self.observe(transfer.from_address, transfer.block_number)
        self.observe(transfer.to_address, transfer.block_number)
        self.observe(transfer.token_contract_address, transfer.block_number)

    def __getitem__(self, address: bytes) -> int:
        return self._blocks[address]

    def __len__(self):
        return len(self._blocks)

    def __iter__(self) -> Iterator[Tuple[bytes, int]]:
        return iter(self._blocks.items())


async def resolve_balance(client: NodeClient, address: bytes, block_number: int) -> AddressRecord:
    try:
        balance: Optional[int] = await client.get_balance(bytes_to_hex(address), block_number)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(
            'Cannot fetch address balance',
            extra={'address': bytes_to_hex(address), 'block_number': block_number, 'exception': repr(e)},
        )
        balance = None

    return AddressRecord(
        hash=address,
        fetched_coin_balance=balance,
        fetched_coin_balance_block_number=block_number,
    )


async def resolve_balances(client: NodeClient, watermarks: AddressWatermarks) -> List[AddressRecord]:
    """
    One balance lookup per address at its watermark, all at once.

    A failed lookup does not fail others, the address comes back with an
    unknown (None) balance.
    """
    tasks = [resolve_balance(client, address, block_number) for address, block_number in watermarks]
    return list(await asyncio.gather(*tasks))
