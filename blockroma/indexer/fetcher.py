import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from blockroma.common.processing.token_transfers import (
    get_unique_tokens,
    is_token_transfer_input,
    parse_token_transfers,
)
from blockroma.common.rpc import REQUEST_ERRORS, NodeClient, NodeRequestError
from blockroma.common.structs import BlockRange
from blockroma.indexer.balances import AddressWatermarks, resolve_balances
from blockroma.indexer.parsing import parse_block, parse_transaction
from blockroma.indexer.structs import (
    BlockRecord,
    FetchedRange,
    TokenRecord,
    TokenTransferRecord,
    TransactionRecord,
)
from blockroma.typing import RawBlock, RawReceipt

logger = logging.getLogger(__name__)


def get_tx_hash(raw_tx: Any) -> Optional[str]:
    """
    >>> get_tx_hash({"hash": "0x01"})
    '0x01'
    >>> get_tx_hash({"hash": ["0x01"]}) is None
    True
    """
    tx_hash = raw_tx.get('hash') if isinstance(raw_tx, dict) else None
    return tx_hash if isinstance(tx_hash, str) else None


class RangeFetcher:
    """
    Turns a block range into records ready to be written.

    Blocks are requested from the node one by one from the highest number
    down. Blocks the node has not returned are skipped, the gap stays in the
    database and is found by the next catchup run.
    """

    def __init__(self, client: NodeClient) -> None:
        self.client = client

    async def get_receipt(self, tx_hash: str) -> Optional[RawReceipt]:
        try:
            return await self.client.get_receipt(tx_hash)
        except (NodeRequestError, *REQUEST_ERRORS) as e:
            logger.warning('Cannot fetch transaction receipt', extra={'tx_hash': tx_hash, 'exception': repr(e)})
            return None

    async def get_receipts(self, raw_block: RawBlock) -> Dict[str, RawReceipt]:
        """
        Receipts are requested only for transactions calling a known token
        transfer method.
        """
        hashes = []
        for raw_tx in raw_block['transactions']:
            tx_hash = get_tx_hash(raw_tx)
            if tx_hash is not None and is_token_transfer_input(raw_tx.get('input')):
                hashes.append(tx_hash)

        receipts = await asyncio.gather(*[self.get_receipt(tx_hash) for tx_hash in hashes])
        return {tx_hash: receipt for tx_hash, receipt in zip(hashes, receipts) if receipt is not None}

    async def fetch_block(
            self,
            number: int,
            watermarks: AddressWatermarks,
    ) -> Optional[Tuple[BlockRecord, List[TransactionRecord], List[TokenTransferRecord], List[TokenRecord]]]:
        raw_block = await self.client.get_raw_block(number)
        if raw_block is None:
            logger.warning('Block has not been fetched, skipping', extra={'number': number})
            return None

        block = parse_block(raw_block)
        if block is None:
            return None

        watermarks.observe(block.miner, block.number)

        receipts = await self.get_receipts(raw_block)

        transactions = []
        transfers: List[TokenTransferRecord] = []
        tokens: List[TokenRecord] = []
        cumulative_gas_used = 0

        for raw_tx in raw_block['transactions']:
            receipt = receipts.get(get_tx_hash(raw_tx))

            tx = parse_transaction(raw_tx, block, cumulative_gas_used, receipt)
            if tx is None:
                # malformed transactions do not count into the block gas
                continue

            cumulative_gas_used += tx.gas
            tx = tx._replace(cumulative_gas_used=cumulative_gas_used)
            transactions.append(tx)
            watermarks.observe(tx.from_address, tx.block_number)
            watermarks.observe(tx.to_address, tx.block_number)

            if receipt is None:
                continue

            tx_transfers, tx_tokens = parse_token_transfers(receipt.get('logs') or [])
            for transfer in tx_transfers:
                watermarks.observe_transfer(transfer)

            transfers.extend(tx_transfers)
            tokens.extend(tx_tokens)

        return block, transactions, transfers, tokens

    async def fetch_range(self, block_range: BlockRange) -> FetchedRange:
        watermarks = AddressWatermarks()

        blocks = []
        transactions = []
        transfers = []
        tokens = []

        for number in reversed(block_range.as_range()):
            fetched = await self.fetch_block(number, watermarks)
            if fetched is None:
                continue

            block, block_transactions, block_transfers, block_tokens = fetched
            blocks.append(block)
            transactions.extend(block_transactions)
            transfers.extend(block_transfers)
            tokens.extend(block_tokens)

        addresses = await resolve_balances(self.client, watermarks)

        return FetchedRange(
            blocks=blocks,
            transactions=transactions,
            addresses=addresses,
            token_transfers=transfers,
            tokens=get_unique_tokens(tokens),
        )
