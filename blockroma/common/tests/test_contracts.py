import pytest
from eth_abi import encode
from eth_abi.exceptions import DecodingError

from blockroma.common.contracts import decode_metadata_output


@pytest.mark.parametrize(
    "method, data, expected",
    [
        ('name', encode(['string'], ['Dai Stablecoin']), 'Dai Stablecoin'),
        ('symbol', encode(['string'], ['DAI']), 'DAI'),
        ('decimals', encode(['uint8'], [18]), 18),
        ('totalSupply', encode(['uint256'], [2 ** 255]), 2 ** 255),
    ]
)
def test_decode_metadata_output(method, data, expected):
    assert decode_metadata_output(method, data) == expected


def test_decode_metadata_output_reads_bytes32_names():
    assert decode_metadata_output('name', b'Maker'.ljust(32, b'\x00')) == 'Maker'


def test_decode_metadata_output_fails_on_empty_output():
    # `eth_call` to an account without code returns `0x`
    with pytest.raises(DecodingError):
        decode_metadata_output('decimals', b'')
