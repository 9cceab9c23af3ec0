import logging
from typing import Optional

from blockroma.common.hex import hex_to_bytes, hex_to_int, optional_hex_to_int
from blockroma.indexer.structs import BlockRecord, TransactionRecord, TxStatus
from blockroma.typing import RawBlock, RawTransaction, RawReceipt

logger = logging.getLogger(__name__)

MILLISECONDS = 1000


def parse_block(raw: RawBlock) -> Optional[BlockRecord]:
    """
    Normalize `eth_getBlockByNumber` payload.

    Returns None for malformed payloads, so a caller skips just this block.
    """
    try:
        return BlockRecord(
            hash=hex_to_bytes(raw['hash']),
            number=hex_to_int(raw['number']),
            parent_hash=hex_to_bytes(raw['parentHash']),
            miner=hex_to_bytes(raw['miner']),
            difficulty=hex_to_int(raw['difficulty']),
            total_difficulty=optional_hex_to_int(raw.get('totalDifficulty')),
            gas_limit=hex_to_int(raw['gasLimit']),
            gas_used=hex_to_int(raw['gasUsed']),
            base_fee_per_gas=optional_hex_to_int(raw.get('baseFeePerGas')),
            size=optional_hex_to_int(raw.get('size')),
            nonce=hex_to_bytes(raw['nonce']),
            timestamp=hex_to_int(raw['timestamp']) * MILLISECONDS,
            # there is no fork handling, every imported block is canonical
            consensus=True,
            is_empty=not raw['transactions'],
        )
    except Exception:
        logger.error('Failed to parse the block', extra={'block': raw}, exc_info=True)
        return None


def get_tx_status(receipt: Optional[RawReceipt]) -> TxStatus:
    if receipt is None or receipt.get('status') is None:
        return TxStatus.OK

    return TxStatus.OK if hex_to_int(receipt['status']) == 1 else TxStatus.ERROR


def parse_transaction(
        raw: RawTransaction,
        block: BlockRecord,
        cumulative_gas_used: int,
        receipt: Optional[RawReceipt] = None,
) -> Optional[TransactionRecord]:
    try:
        to_address = raw.get('to')
        gas_used = receipt.get('gasUsed') if receipt else None

        return TransactionRecord(
            hash=hex_to_bytes(raw['hash']),
            block_hash=block.hash,
            block_number=block.number,
            from_address=hex_to_bytes(raw['from']),
            # contract creation
            to_address=hex_to_bytes(to_address) if to_address else None,
            value=hex_to_int(raw['value']),
            gas=hex_to_int(raw['gas']),
            gas_price=optional_hex_to_int(raw.get('gasPrice')),
            gas_used=optional_hex_to_int(gas_used),
            cumulative_gas_used=cumulative_gas_used,
            index=hex_to_int(raw['transactionIndex']),
            nonce=hex_to_int(raw['nonce']),
            input=hex_to_bytes(raw['input']),
            r=hex_to_int(raw['r']),
            s=hex_to_int(raw['s']),
            v=hex_to_int(raw['v']),
            status=get_tx_status(receipt),
            max_fee_per_gas=optional_hex_to_int(raw.get('maxFeePerGas')),
            max_priority_fee_per_gas=optional_hex_to_int(raw.get('maxPriorityFeePerGas')),
            type=optional_hex_to_int(raw.get('type')),
            timestamp=block.timestamp,
        )
    except Exception:
        logger.error('Failed to parse the transaction', extra={'transaction': raw}, exc_info=True)
        return None
