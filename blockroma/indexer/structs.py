from enum import IntEnum
from typing import NamedTuple, Optional, List, Dict, Any


class TxStatus(IntEnum):
    ERROR = 0
    OK = 1


class TokenType:
    ERC20 = 'ERC-20'
    ERC721 = 'ERC-721'
    ERC1155 = 'ERC-1155'


class BlockRecord(NamedTuple):
    hash: bytes
    number: int
    parent_hash: bytes
    miner: bytes
    difficulty: int
    total_difficulty: Optional[int]
    gas_limit: int
    gas_used: int
    base_fee_per_gas: Optional[int]
    size: Optional[int]
    nonce: bytes
    timestamp: int
    consensus: bool
    is_empty: bool


class TransactionRecord(NamedTuple):
    hash: bytes
    block_hash: bytes
    block_number: int
    from_address: bytes
    to_address: Optional[bytes]
    value: int
    gas: int
    gas_price: Optional[int]
    gas_used: Optional[int]
    cumulative_gas_used: int
    index: int
    nonce: int
    input: bytes
    r: int
    s: int
    v: int
    status: TxStatus
    max_fee_per_gas: Optional[int]
    max_priority_fee_per_gas: Optional[int]
    type: Optional[int]
    timestamp: int


class AddressRecord(NamedTuple):
    hash: bytes
    fetched_coin_balance: Optional[int]
    fetched_coin_balance_block_number: Optional[int]

    @property
    def is_balance_known(self) -> bool:
        return self.fetched_coin_balance is not None


class TokenRecord(NamedTuple):
    contract_address: bytes
    type: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[int] = None
    total_supply: Optional[int] = None
    skip_metadata: bool = False


class TokenTransferRecord(NamedTuple):
    transaction_hash: bytes
    log_index: int
    block_hash: bytes
    block_number: int
    from_address: bytes
    to_address: bytes
    token_contract_address: bytes
    type: str
    amount: Optional[int] = None
    token_id: Optional[int] = None
    amounts: Optional[List[int]] = None
    token_ids: Optional[List[int]] = None


class FetchedRange(NamedTuple):
    blocks: List[BlockRecord]
    transactions: List[TransactionRecord]
    addresses: List[AddressRecord]
    token_transfers: List[TokenTransferRecord]
    tokens: List[TokenRecord]

    def stats(self) -> Dict[str, Any]:
        return {
            'blocks': len(self.blocks),
            'transactions': len(self.transactions),
            'addresses': len(self.addresses),
            'token_transfers': len(self.token_transfers),
            'tokens': len(self.tokens),
        }
