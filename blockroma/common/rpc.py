import asyncio
import itertools
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

import aiohttp
import backoff
from hexbytes import HexBytes

from blockroma import settings
from blockroma.common.hex import hex_to_int
from blockroma.common.prom_metrics import METRIC_NODE_REQUEST_RETRIES_TOTAL, METRIC_NODE_BLOCK_FETCH_FAILURES_TOTAL
from blockroma.typing import NewBlockCallback, RawBlock, RawReceipt

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)
REQUEST_ERRORS = (*TRANSPORT_ERRORS, ValueError)


class NodeRequestError(Exception):
    pass


class NodePool:
    """
    Round-robin over a fixed set of node endpoints.

    >>> pool = NodePool(['a', 'b', 'c'])
    >>> [pool.next() for _ in range(4)]
    ['b', 'c', 'a', 'b']
    """

    def __init__(self, urls: Sequence[str]) -> None:
        if not urls:
            raise ValueError('At least one node url is required')

        self.urls = tuple(urls)
        self._counter = itertools.count(1)

    def next(self) -> str:
        return self.urls[next(self._counter) % len(self.urls)]

    def __len__(self):
        return len(self.urls)


def _get_call_arg(details: Dict[str, Any], name: str) -> Any:
    # args[0] is the client itself
    args = details['args']
    return args[1] if len(args) > 1 else details['kwargs'].get(name)


def log_request_retry(details: Dict[str, Any]) -> None:
    METRIC_NODE_REQUEST_RETRIES_TOTAL.inc()
    logger.warning(
        'Node request has failed, retrying',
        extra={
            'method': _get_call_arg(details, 'method'),
            'tries': details['tries'],
            'wait': round(details['wait'], 3),
        }
    )


def log_block_retry(details: Dict[str, Any]) -> None:
    logger.warning(
        'Failed to fetch raw block',
        extra={
            'number': _get_call_arg(details, 'number'),
            'tries': details['tries'],
            'wait': round(details['wait'], 3),
        }
    )


def log_block_giveup(details: Dict[str, Any]) -> None:
    METRIC_NODE_BLOCK_FETCH_FAILURES_TOTAL.inc()
    logger.warning('Give up to fetch raw block, skipping', extra={'number': _get_call_arg(details, 'number')})


class NodeClient:
    """
    JSON-RPC client over a pool of EVM nodes.
    """

    def __init__(
            self,
            urls: Optional[Sequence[str]] = None,
            timeout: int = settings.ETH_NODE_TIMEOUT,
            poll_interval: float = settings.ETH_NODE_POLL_INTERVAL,
    ) -> None:
        self.pool = NodePool(urls or settings.ETH_NODE_URLS)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={'User-Agent': settings.HTTP_USER_AGENT},
        )

    async def disconnect(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.disconnect()
        if any(exc_info):
            return False

    @backoff.on_exception(
        backoff.expo,
        TRANSPORT_ERRORS,
        max_tries=lambda: settings.ETH_NODE_MAX_TRIES,
        on_backoff=log_request_retry,
    )
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        url = self.pool.next()
        message = {'jsonrpc': '2.0', 'method': method, 'params': params or [], 'id': next(self._ids)}

        async with self.session.post(url, json=message) as response:
            response.raise_for_status()
            data = await response.json(content_type=None)

        if 'error' in data:
            raise NodeRequestError(f"[JSON RPC] {url}: {method} has failed: {data['error']}")

        return data.get('result')

    @backoff.on_predicate(
        backoff.expo,
        lambda raw: raw is None,
        max_tries=lambda: settings.ETH_NODE_BLOCK_FETCH_TRIES,
        jitter=backoff.full_jitter,
        factor=0.5,
        on_backoff=log_block_retry,
        on_giveup=log_block_giveup,
    )
    async def get_raw_block(self, number: int, include_transactions: bool = True) -> Optional[RawBlock]:
        """
        Returns None when the node has not returned the block after all tries,
        the caller must skip such block.
        """
        try:
            return await self.request('eth_getBlockByNumber', [hex(number), include_transactions])
        except (NodeRequestError, *REQUEST_ERRORS) as e:
            logger.warning('Node has failed to return the block', extra={'number': number, 'exception': repr(e)})

        return None

    async def get_receipt(self, tx_hash: str) -> RawReceipt:
        receipt = await self.request('eth_getTransactionReceipt', [tx_hash])
        if receipt is None:
            raise NodeRequestError(f'[JSON RPC] Receipt for {tx_hash} was not found')

        return receipt

    async def get_balance(self, address: str, block_number: int) -> int:
        result = await self.request('eth_getBalance', [address, hex(block_number)])
        return hex_to_int(result)

    async def get_block_number(self) -> int:
        result = await self.request('eth_blockNumber')
        return hex_to_int(result)

    async def call(self, address: str, data: str, block: str = 'latest') -> bytes:
        result = await self.request('eth_call', [{'to': address, 'data': data}, block])
        return bytes(HexBytes(result))

    async def watch_blocks(
            self,
            poll_interval: Optional[float] = None,
            start_after: Optional[int] = None,
    ) -> AsyncGenerator[int, None]:
        """
        Yields every new block number once, in ascending order.

        The head is polled with `eth_blockNumber`, when the head jumps by
        several blocks between polls all of them are yielded.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        last_seen = start_after

        while True:
            try:
                head = await self.get_block_number()
            except (NodeRequestError, *REQUEST_ERRORS) as e:
                logger.warning('Cannot get the chain head', extra={'exception': repr(e)})
            else:
                if last_seen is None:
                    last_seen = head - 1

                for number in range(last_seen + 1, head + 1):
                    yield number

                last_seen = max(last_seen, head)

            await asyncio.sleep(interval)

    def subscribe(self, on_new_block: NewBlockCallback, poll_interval: Optional[float] = None) -> asyncio.Task:
        async def listen() -> None:
            async for number in self.watch_blocks(poll_interval):
                logger.info('New block notification', extra={'number': number})
                await on_new_block(number)

        return asyncio.ensure_future(listen())
