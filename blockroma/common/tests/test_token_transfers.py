import pytest
from eth_abi import encode

from blockroma.common import contracts
from blockroma.common.processing.token_transfers import (
    ERC1155BatchTransfer,
    ERC1155SingleTransfer,
    ERC20Transfer,
    ERC721DataTransfer,
    ERC721TopicsTransfer,
    PARSERS,
    find_parser,
    is_token_transfer_input,
    parse_token_transfers,
)
from blockroma.indexer.structs import TokenType
from blockroma.tests.plugins.node import address_to_topic, make_address, uint_to_data

TOKEN = make_address(0x70ce)
OPERATOR = make_address(0x0b)
SENDER = make_address(0xa1)
RECIPIENT = make_address(0xb2)


def make_log(topics, data='0x', address=TOKEN, log_index=0):
    return {
        'address': address,
        'topics': topics,
        'data': data,
        'logIndex': hex(log_index),
        'transactionHash': '0x' + '11' * 32,
        'blockHash': '0x' + '22' * 32,
        'blockNumber': '0x64',
    }


@pytest.fixture
def erc20_log():
    topics = [contracts.TRANSFER_EVENT_TOPIC, address_to_topic(SENDER), address_to_topic(RECIPIENT)]
    return make_log(topics, uint_to_data(10 ** 18))


@pytest.fixture
def erc721_log():
    topics = [
        contracts.TRANSFER_EVENT_TOPIC,
        address_to_topic(SENDER),
        address_to_topic(RECIPIENT),
        uint_to_data(42),
    ]
    return make_log(topics)


@pytest.fixture
def erc721_data_log():
    data = '0x' + encode(['address', 'address', 'uint256'], [SENDER, RECIPIENT, 7]).hex()
    return make_log([contracts.TRANSFER_EVENT_TOPIC], data)


@pytest.fixture
def erc1155_single_log():
    topics = [
        contracts.ERC1155_TRANSFER_SINGLE_TOPIC,
        address_to_topic(OPERATOR),
        address_to_topic(SENDER),
        address_to_topic(RECIPIENT),
    ]
    return make_log(topics, uint_to_data(5, 100))


@pytest.fixture
def erc1155_batch_log():
    topics = [
        contracts.ERC1155_TRANSFER_BATCH_TOPIC,
        address_to_topic(OPERATOR),
        address_to_topic(SENDER),
        address_to_topic(RECIPIENT),
    ]
    data = '0x' + encode(['uint256[]', 'uint256[]'], [[1, 2, 3], [10, 20, 30]]).hex()
    return make_log(topics, data)


@pytest.mark.parametrize(
    "log_fixture, parser_class",
    [
        ('erc20_log', ERC20Transfer),
        ('erc721_log', ERC721TopicsTransfer),
        ('erc721_data_log', ERC721DataTransfer),
        ('erc1155_single_log', ERC1155SingleTransfer),
        ('erc1155_batch_log', ERC1155BatchTransfer),
    ]
)
def test_exactly_one_parser_matches_each_log_shape(request, log_fixture, parser_class):
    log = request.getfixturevalue(log_fixture)

    matched = [parser for parser in PARSERS if parser.matches_log(log)]

    assert [type(parser) for parser in matched] == [parser_class]
    assert isinstance(find_parser(log), parser_class)


def test_unrelated_log_is_not_matched():
    log = make_log([contracts.ERC20_METHODS_IDS['approve'] + '00' * 28])
    assert find_parser(log) is None


def test_log_without_topics_is_not_matched():
    assert find_parser(make_log([])) is None


def test_erc20_transfer(erc20_log):
    transfers, tokens = parse_token_transfers([erc20_log])

    transfer, = transfers
    assert transfer.type == TokenType.ERC20
    assert transfer.from_address == bytes.fromhex(SENDER[2:])
    assert transfer.to_address == bytes.fromhex(RECIPIENT[2:])
    assert transfer.amount == 10 ** 18
    assert transfer.token_id is None
    assert transfer.block_number == 100
    assert transfer.log_index == 0

    token, = tokens
    assert token.contract_address == bytes.fromhex(TOKEN[2:])
    assert token.type == TokenType.ERC20


def test_erc721_transfer_with_indexed_token_id(erc721_log):
    transfer, = parse_token_transfers([erc721_log])[0]

    assert transfer.type == TokenType.ERC721
    assert transfer.token_id == 42
    assert transfer.amount is None


def test_erc721_transfer_with_token_id_in_data(erc721_data_log):
    transfer, = parse_token_transfers([erc721_data_log])[0]

    assert transfer.type == TokenType.ERC721
    assert transfer.from_address == bytes.fromhex(SENDER[2:])
    assert transfer.to_address == bytes.fromhex(RECIPIENT[2:])
    assert transfer.token_id == 7


def test_erc1155_single_transfer_skips_operator(erc1155_single_log):
    transfer, = parse_token_transfers([erc1155_single_log])[0]

    assert transfer.type == TokenType.ERC1155
    assert transfer.from_address == bytes.fromhex(SENDER[2:])
    assert transfer.to_address == bytes.fromhex(RECIPIENT[2:])
    assert transfer.token_id == 5
    assert transfer.amount == 100


def test_erc1155_batch_transfer_skips_operator(erc1155_batch_log):
    transfer, = parse_token_transfers([erc1155_batch_log])[0]

    assert transfer.type == TokenType.ERC1155
    assert transfer.from_address == bytes.fromhex(SENDER[2:])
    assert transfer.to_address == bytes.fromhex(RECIPIENT[2:])
    assert transfer.token_ids == [1, 2, 3]
    assert transfer.amounts == [10, 20, 30]


def test_malformed_log_is_skipped(erc20_log, erc721_log):
    broken = dict(erc20_log, data='0x01')

    transfers, tokens = parse_token_transfers([broken, erc721_log])

    assert [transfer.type for transfer in transfers] == [TokenType.ERC721]
    assert len(tokens) == 1


def test_log_with_non_string_topic_is_skipped(erc20_log, erc721_log):
    broken = dict(erc20_log, topics=[contracts.TRANSFER_EVENT_TOPIC, 1, 2])

    transfers, tokens = parse_token_transfers([broken, erc721_log])

    assert [transfer.type for transfer in transfers] == [TokenType.ERC721]


def test_tokens_are_unique_by_contract(erc20_log):
    second = dict(erc20_log, logIndex='0x1')

    transfers, tokens = parse_token_transfers([erc20_log, second])

    assert len(transfers) == 2
    assert len(tokens) == 1


@pytest.mark.parametrize(
    "tx_input, expected",
    [
        ('0xa9059cbb' + '00' * 64, True),
        ('0xF907FC5B' + '00' * 64, True),
        ('0x23b872dd' + '00' * 96, True),
        ('0x42842e0e' + '00' * 96, True),
        ('0xb88d4fde' + '00' * 128, True),
        ('0xf242432a' + '00' * 160, True),
        ('0x2eb2c2d6' + '00' * 160, True),
        ('0x095ea7b3' + '00' * 64, False),
        ('0x', False),
        (None, False),
        (12345, False),
    ]
)
def test_is_token_transfer_input(tx_input, expected):
    assert is_token_transfer_input(tx_input) is expected
