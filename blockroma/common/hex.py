"""
Conversions for quantities and byte strings as they come from the node's JSON-RPC.

Quantities are decoded with Python's arbitrary precision integers, never through
floats, so 256-bit values survive untouched.
"""
from typing import Optional

from eth_utils import remove_0x_prefix


def hex_to_bytes(value: str) -> bytes:
    """
    >>> hex_to_bytes('0x0a0b')
    b'\\n\\x0b'
    >>> hex_to_bytes('0x')
    b''
    """
    if not isinstance(value, str):
        raise TypeError(f'Expected hex string, got {type(value).__name__}')

    body = remove_0x_prefix(value)
    if len(body) % 2:
        body = '0' + body

    return bytes.fromhex(body)


def hex_to_int(value: str) -> int:
    """
    >>> hex_to_int('0x10')
    16
    >>> hex_to_int('0x0')
    0
    """
    if not isinstance(value, str):
        raise TypeError(f'Expected hex string, got {type(value).__name__}')

    body = remove_0x_prefix(value)
    return int(body, 16) if body else 0


def hex_to_decimal(value: str) -> str:
    """
    >>> hex_to_decimal('0xde0b6b3a7640000')
    '1000000000000000000'
    """
    return str(hex_to_int(value))


def optional_hex_to_int(value: Optional[str]) -> Optional[int]:
    """
    >>> optional_hex_to_int(None) is None
    True
    >>> optional_hex_to_int('0x2')
    2
    """
    if value is None:
        return None
    return hex_to_int(value)


def bytes_to_hex(value: bytes) -> str:
    """
    >>> bytes_to_hex(b'\\x01\\xff')
    '0x01ff'
    """
    return '0x' + value.hex()


def topic_to_address(topic: str) -> bytes:
    """
    Takes last 20 bytes of a 32 bytes indexed topic.

    >>> topic_to_address('0x000000000000000000000000' + 'ab' * 20) == bytes.fromhex('ab' * 20)
    True
    """
    raw = hex_to_bytes(topic)
    if len(raw) != 32:
        raise ValueError(f'Topic must be 32 bytes long, got {len(raw)}')

    return raw[-20:]
