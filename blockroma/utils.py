import logging
from typing import Iterator, List, Sequence, TypeVar

from blockroma.common.structs import LATEST, BlockBound, RootRange

logger = logging.getLogger(__name__)

T = TypeVar('T')


def split(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """
    >>> list(split([1, 2, 3, 4, 5], 2))
    [[1, 2], [3, 4], [5]]
    """
    for i in range(0, len(items), size):
        yield items[i:i + size]


def parse_bound(value: str) -> BlockBound:
    """
    >>> parse_bound('latest')
    'latest'
    >>> parse_bound(' 10 ')
    10
    """
    value = value.strip().lower()
    if value == LATEST:
        return LATEST

    number = int(value)
    if number < 0:
        raise ValueError('Invalid range. It allows to be from 0 to integer or latest.')

    return number


def parse_range(value: str) -> RootRange:
    """
    >>> parse_range('10-20')
    RootRange(start=10, end=20)
    >>> parse_range('0-latest')
    RootRange(start=0, end='latest')
    >>> parse_range('latest-latest')
    RootRange(start='latest', end='latest')
    """
    parts = [p.strip() for p in value.split('-')]

    if len(parts) != 2 or not all(parts):
        raise ValueError(f'Invalid block range option: {value!r}')

    return RootRange(parse_bound(parts[0]), parse_bound(parts[1]))


def parse_ranges(value: str) -> List[RootRange]:
    """
    >>> parse_ranges('')
    []
    >>> parse_ranges('0-100, 200-latest')
    [RootRange(start=0, end=100), RootRange(start=200, end='latest')]
    """
    return [parse_range(item) for item in value.split(',') if item.strip()]
