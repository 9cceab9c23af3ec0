import asyncio
import logging
from typing import Dict, List, Optional

from blockroma.common.contracts import ERC20_METHODS_IDS, decode_metadata_output
from blockroma.common.hex import bytes_to_hex
from blockroma.common.rpc import NodeClient
from blockroma.indexer.structs import TokenRecord, TokenType

logger = logging.getLogger(__name__)

METADATA_METHODS = ('name', 'symbol', 'decimals', 'totalSupply')


def is_metadata_required(token: TokenRecord, stored: Optional[TokenRecord]) -> bool:
    """
    Only ERC-20 contracts are asked for metadata, and only once: either the
    stored row already has it or it is flagged to be skipped.
    """
    if token.type != TokenType.ERC20:
        return False

    if stored is None:
        return True

    if stored.skip_metadata:
        return False

    return stored.decimals is None and stored.total_supply is None


async def fetch_erc20_metadata(client: NodeClient, token: TokenRecord) -> TokenRecord:
    address = bytes_to_hex(token.contract_address)
    calls = [client.call(address, ERC20_METHODS_IDS[method]) for method in METADATA_METHODS]
    results = await asyncio.gather(*calls, return_exceptions=True)

    values = {}
    failed = []
    for method, result in zip(METADATA_METHODS, results):
        if isinstance(result, asyncio.CancelledError):
            raise result

        if isinstance(result, BaseException):
            failed.append(method)
            continue

        try:
            values[method] = decode_metadata_output(method, result)
        except Exception:
            failed.append(method)

    if failed:
        # non conformant contract, do not ask it again on next batches
        logger.warning('Cannot fetch token metadata', extra={'token': address, 'methods': failed})

    return token._replace(
        name=values.get('name'),
        symbol=values.get('symbol'),
        decimals=values.get('decimals'),
        total_supply=values.get('totalSupply'),
        skip_metadata=bool(failed),
    )


async def enrich_tokens(
        client: NodeClient,
        tokens: List[TokenRecord],
        stored: Dict[bytes, TokenRecord],
) -> List[TokenRecord]:
    """
    Returns tokens to upsert: new or not yet enriched ERC-20 tokens come with
    metadata, known tokens keep what is stored.
    """
    to_fetch = []
    result = {}
    for token in tokens:
        stored_token = stored.get(token.contract_address)
        if is_metadata_required(token, stored_token):
            to_fetch.append(token)
        else:
            result[token.contract_address] = stored_token or token

    fetched = await asyncio.gather(*[fetch_erc20_metadata(client, token) for token in to_fetch])
    for token in fetched:
        result[token.contract_address] = token

    return list(result.values())
