from typing import Any, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError

# Transfer(address,address,uint256), shared by ERC-20 and ERC-721
TRANSFER_EVENT_TOPIC = '0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef'
# TransferSingle(address,address,address,uint256,uint256)
ERC1155_TRANSFER_SINGLE_TOPIC = '0xc3d58168c5ae7397731d063d5bbf3d657854427343f4c083240f7aacaa2d0f62'
# TransferBatch(address,address,address,uint256[],uint256[])
ERC1155_TRANSFER_BATCH_TOPIC = '0x4a39dc06d4c0dbc64b70af90fd698a233a518aa5d07e595d983b8c0526c8f7fb'

ERC20_METHODS_IDS = {
    'approve': '0x095ea7b3',
    'transfer': '0xa9059cbb',
    'transferFrom': '0x23b872dd',

    'balanceOf': '0x70a08231',
    'allowance': '0xdd62ed3e',

    'name': '0x06fdde03',
    'symbol': '0x95d89b41',
    'decimals': '0x313ce567',
    'totalSupply': '0x18160ddd',
}

# seen on old ERC-20 and early ERC-721/ERC-1155 deployments
ERC20_UNKNOWN_TRANSFER_ID = '0xf907fc5b'

ERC721_METHODS_IDS = {
    'transferFrom': '0x23b872dd',
    'safeTransferFrom': '0x42842e0e',
    'safeTransferFromWithData': '0xb88d4fde',
}

ERC1155_METHODS_IDS = {
    'safeTransferFrom': '0xf242432a',
    'safeBatchTransferFrom': '0x2eb2c2d6',
}

ERC20_METADATA_OUTPUTS = {
    'name': 'string',
    'symbol': 'string',
    'decimals': 'uint8',
    'totalSupply': 'uint256',
}


def decode_metadata_output(method: str, data: bytes) -> Any:
    """
    Decodes output of ERC-20 metadata calls.

    Some old tokens (MKR for example) return `bytes32` from `name` and `symbol`
    instead of `string`, such values are right padded with zeros.

    >>> from eth_abi import encode
    >>> decode_metadata_output('decimals', encode(['uint8'], [18]))
    18
    >>> decode_metadata_output('symbol', encode(['string'], ['DAI']))
    'DAI'
    >>> decode_metadata_output('symbol', b'MKR'.ljust(32, b'\\x00'))
    'MKR'
    """
    output_type = ERC20_METADATA_OUTPUTS[method]
    if output_type != 'string':
        return decode([output_type], data)[0]

    try:
        return decode(['string'], data)[0]
    except (DecodingError, OverflowError, ValueError):
        if len(data) != 32:
            raise

    return _bytes32_to_text(data)


def _bytes32_to_text(data: bytes) -> Optional[str]:
    return data.rstrip(b'\x00').decode('utf-8', errors='replace')
