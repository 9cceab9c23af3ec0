import pytest

from blockroma.common.hex import bytes_to_hex, hex_to_bytes, hex_to_int, optional_hex_to_int, topic_to_address


@pytest.mark.parametrize(
    "value, expected",
    [
        ('0x0', 0),
        ('0x', 0),
        ('0xff', 255),
        ('0x' + 'f' * 64, 2 ** 256 - 1),
    ],
    ids=['zero', 'empty', 'byte', 'uint256-max'],
)
def test_hex_to_int(value, expected):
    assert hex_to_int(value) == expected


def test_hex_to_int_keeps_precision_above_float_range():
    # 2 ** 53 + 1 is not representable as float
    assert hex_to_int(hex(2 ** 53 + 1)) == 2 ** 53 + 1


def test_hex_to_bytes_pads_odd_length():
    assert hex_to_bytes('0xabc') == b'\x0a\xbc'


@pytest.mark.parametrize("value", [None, 10, b'0x10'])
def test_hex_conversions_reject_non_strings(value):
    with pytest.raises(TypeError):
        hex_to_int(value)

    with pytest.raises(TypeError):
        hex_to_bytes(value)


def test_hex_to_int_rejects_garbage():
    with pytest.raises(ValueError):
        hex_to_int('0xzz')


def test_optional_hex_to_int():
    assert optional_hex_to_int(None) is None
    assert optional_hex_to_int('0x1') == 1


def test_bytes_to_hex_is_inverse_of_hex_to_bytes():
    value = '0x' + 'de' * 20
    assert bytes_to_hex(hex_to_bytes(value)) == value


def test_topic_to_address_takes_last_20_bytes():
    address = 'ab' * 20
    assert topic_to_address('0x' + '00' * 12 + address) == bytes.fromhex(address)


def test_topic_to_address_requires_32_bytes():
    with pytest.raises(ValueError):
        topic_to_address('0x' + 'ab' * 20)
