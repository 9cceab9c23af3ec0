"""
Token transfers recognition.

Every supported token standard is described by a parser with three methods:

    * `matches_input_selector` - cheap check of a transaction's call data
      selector, receipts are requested only for transactions that look like
      transfers;
    * `matches_log` - dispatch by `topics[0]` and by which of `topics[1..3]`
      are present;
    * `parse` - turns a log into a `TokenTransferRecord`, raises on malformed
      payloads.

Parsers are tried in `PARSERS` order and the first matching one wins. Log
shapes are mutually exclusive, so the order only matters for determinism.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from eth_abi import decode

from blockroma.common import contracts
from blockroma.common.hex import hex_to_bytes, hex_to_int, topic_to_address
from blockroma.indexer.structs import TokenRecord, TokenTransferRecord, TokenType
from blockroma.typing import Log, Logs

logger = logging.getLogger(__name__)

SELECTOR_SIZE = 10  # '0x' + 4 bytes


def get_selector(tx_input: Optional[str]) -> Optional[str]:
    """
    >>> get_selector('0xa9059cbb000000000000000000000000')
    '0xa9059cbb'
    >>> get_selector('0x') is None
    True
    """
    if not isinstance(tx_input, str) or len(tx_input) < SELECTOR_SIZE:
        return None
    return tx_input[:SELECTOR_SIZE].lower()


def get_topic(log: Log, index: int) -> Optional[str]:
    topics = log.get('topics') or []
    if len(topics) > index and topics[index]:
        return topics[index].lower()
    return None


class TokenTransferParser:
    token_type: str
    selectors: Tuple[str, ...] = ()

    def matches_input_selector(self, selector: Optional[str]) -> bool:
        return selector is not None and selector.lower() in self.selectors

    def matches_log(self, log: Log) -> bool:
        raise NotImplementedError

    def parse(self, log: Log) -> TokenTransferRecord:
        raise NotImplementedError

    def make_transfer(self, log: Log, from_address: bytes, to_address: bytes, **payload) -> TokenTransferRecord:
        return TokenTransferRecord(
            transaction_hash=hex_to_bytes(log['transactionHash']),
            log_index=hex_to_int(log['logIndex']),
            block_hash=hex_to_bytes(log['blockHash']),
            block_number=hex_to_int(log['blockNumber']),
            from_address=from_address,
            to_address=to_address,
            token_contract_address=hex_to_bytes(log['address']),
            type=self.token_type,
            **payload
        )

    def __repr__(self):
        return f'<{self.__class__.__name__}>'


class ERC20Transfer(TokenTransferParser):
    token_type = TokenType.ERC20
    selectors = (
        contracts.ERC20_METHODS_IDS['transfer'],
        contracts.ERC20_UNKNOWN_TRANSFER_ID,
    )

    def matches_log(self, log: Log) -> bool:
        return (
            get_topic(log, 0) == contracts.TRANSFER_EVENT_TOPIC
            and get_topic(log, 1) is not None
            and get_topic(log, 2) is not None
            and get_topic(log, 3) is None
        )

    def parse(self, log: Log) -> TokenTransferRecord:
        amount, = decode(['uint256'], hex_to_bytes(log['data']))
        return self.make_transfer(
            log,
            from_address=topic_to_address(log['topics'][1]),
            to_address=topic_to_address(log['topics'][2]),
            amount=amount,
        )


class ERC721TopicsTransfer(TokenTransferParser):
    """
    ERC-721 `Transfer` with `from`, `to` and `tokenId` indexed.
    """
    token_type = TokenType.ERC721
    selectors = tuple(contracts.ERC721_METHODS_IDS.values())

    def matches_log(self, log: Log) -> bool:
        return (
            get_topic(log, 0) == contracts.TRANSFER_EVENT_TOPIC
            and get_topic(log, 1) is not None
            and get_topic(log, 2) is not None
            and get_topic(log, 3) is not None
        )

    def parse(self, log: Log) -> TokenTransferRecord:
        token_id, = decode(['uint256'], hex_to_bytes(log['topics'][3]))
        return self.make_transfer(
            log,
            from_address=topic_to_address(log['topics'][1]),
            to_address=topic_to_address(log['topics'][2]),
            token_id=token_id,
        )


class ERC721DataTransfer(TokenTransferParser):
    """
    Pre-standard ERC-721 (CryptoKitties and alike), nothing is indexed and
    `from`, `to`, `tokenId` are all in data.
    """
    token_type = TokenType.ERC721
    selectors = tuple(contracts.ERC721_METHODS_IDS.values())

    def matches_log(self, log: Log) -> bool:
        return (
            get_topic(log, 0) == contracts.TRANSFER_EVENT_TOPIC
            and get_topic(log, 1) is None
            and get_topic(log, 2) is None
            and get_topic(log, 3) is None
        )

    def parse(self, log: Log) -> TokenTransferRecord:
        from_address, to_address, token_id = decode(['address', 'address', 'uint256'], hex_to_bytes(log['data']))
        return self.make_transfer(
            log,
            from_address=hex_to_bytes(from_address),
            to_address=hex_to_bytes(to_address),
            token_id=token_id,
        )


class ERC1155BatchTransfer(TokenTransferParser):
    """
    TransferBatch(operator indexed, from indexed, to indexed, ids, values)
    """
    token_type = TokenType.ERC1155
    selectors = tuple(contracts.ERC1155_METHODS_IDS.values())

    def matches_log(self, log: Log) -> bool:
        return get_topic(log, 0) == contracts.ERC1155_TRANSFER_BATCH_TOPIC

    def parse(self, log: Log) -> TokenTransferRecord:
        token_ids, amounts = decode(['uint256[]', 'uint256[]'], hex_to_bytes(log['data']))
        if len(token_ids) != len(amounts):
            raise ValueError('Token ids and amounts have different lengths')

        return self.make_transfer(
            log,
            from_address=topic_to_address(log['topics'][2]),
            to_address=topic_to_address(log['topics'][3]),
            token_ids=list(token_ids),
            amounts=list(amounts),
        )


class ERC1155SingleTransfer(TokenTransferParser):
    """
    TransferSingle(operator indexed, from indexed, to indexed, id, value)
    """
    token_type = TokenType.ERC1155
    selectors = tuple(contracts.ERC1155_METHODS_IDS.values())

    def matches_log(self, log: Log) -> bool:
        return get_topic(log, 0) == contracts.ERC1155_TRANSFER_SINGLE_TOPIC

    def parse(self, log: Log) -> TokenTransferRecord:
        token_id, amount = decode(['uint256', 'uint256'], hex_to_bytes(log['data']))
        return self.make_transfer(
            log,
            from_address=topic_to_address(log['topics'][2]),
            to_address=topic_to_address(log['topics'][3]),
            token_id=token_id,
            amount=amount,
        )


PARSERS: Sequence[TokenTransferParser] = (
    ERC20Transfer(),
    ERC721TopicsTransfer(),
    ERC721DataTransfer(),
    ERC1155BatchTransfer(),
    ERC1155SingleTransfer(),
)


def is_token_transfer_input(tx_input: Optional[str], parsers: Sequence[TokenTransferParser] = PARSERS) -> bool:
    selector = get_selector(tx_input)
    return any(parser.matches_input_selector(selector) for parser in parsers)


def find_parser(log: Log, parsers: Sequence[TokenTransferParser] = PARSERS) -> Optional[TokenTransferParser]:
    for parser in parsers:
        if parser.matches_log(log):
            return parser
    return None


def get_unique_tokens(tokens: List[TokenRecord]) -> List[TokenRecord]:
    unique = {}
    for token in tokens:
        unique[token.contract_address] = token
    return list(unique.values())


def parse_token_transfers(
        logs: Logs,
        parsers: Sequence[TokenTransferParser] = PARSERS,
) -> Tuple[List[TokenTransferRecord], List[TokenRecord]]:
    transfers = []
    tokens = []

    for log in logs:
        parser = None
        try:
            parser = find_parser(log, parsers)
            if parser is None:
                continue

            transfer = parser.parse(log)
        except Exception:
            logger.error(
                'Unknown token transfer, failed to parse log',
                extra={'log': log, 'parser': repr(parser)},
                exc_info=True,
            )
            continue

        transfers.append(transfer)
        tokens.append(TokenRecord(contract_address=transfer.token_contract_address, type=transfer.type))

    return transfers, get_unique_tokens(tokens)
