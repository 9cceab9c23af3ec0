import logging
from typing import Iterable, List

from blockroma.common.structs import BlockRange

logger = logging.getLogger(__name__)


def get_ranges(numbers: Iterable[int]) -> List[BlockRange]:
    """
    Coalesces sorted block numbers into inclusive ranges of consecutive ones.

    >>> get_ranges([102, 103, 106])
    [BlockRange(start=102, end=103), BlockRange(start=106, end=106)]
    >>> get_ranges([])
    []
    """
    ranges: List[BlockRange] = []
    start = end = None

    for number in numbers:
        if start is None:
            start = end = number
        elif number == end + 1:
            end = number
        else:
            ranges.append(BlockRange(start, end))
            start = end = number

    if start is not None:
        ranges.append(BlockRange(start, end))

    return ranges


def chunk_ranges(ranges: Iterable[BlockRange], batch_size: int) -> List[BlockRange]:
    """
    Splits ranges into windows of `batch_size` blocks, ranges spanning less
    than `batch_size` are kept as is.

    >>> chunk_ranges([BlockRange(100, 109)], 4)
    [BlockRange(start=100, end=103), BlockRange(start=104, end=107), BlockRange(start=108, end=109)]
    >>> chunk_ranges([BlockRange(1, 2), BlockRange(5, 5)], 4)
    [BlockRange(start=1, end=2), BlockRange(start=5, end=5)]
    """
    if batch_size < 1:
        raise ValueError(f'Batch size should be positive, got {batch_size}')

    chunks = []
    for block_range in ranges:
        if block_range.end - block_range.start < batch_size:
            chunks.append(block_range)
            continue

        for start in range(block_range.start, block_range.end + 1, batch_size):
            chunks.append(BlockRange(start, min(start + batch_size - 1, block_range.end)))

    return chunks


async def missing_block_ranges(main_db, first: int, last: int) -> List[BlockRange]:
    """
    Ranges of blocks within [first, last] without a consensus block stored.
    """
    bounds = BlockRange.normalized(first, last)
    numbers = await main_db.get_missing_block_numbers(bounds.start, bounds.end)
    gaps = get_ranges(sorted(numbers))

    if gaps:
        logger.info('Gaps were found', extra={'range': str(bounds), 'gaps': len(gaps), 'blocks': len(numbers)})

    return gaps
