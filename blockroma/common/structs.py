from typing import NamedTuple, List, Union

LATEST = 'latest'

BlockBound = Union[int, str]


class DbStats(NamedTuple):
    is_healthy: bool


class LoopStats(NamedTuple):
    is_healthy: bool


class NodeStats(NamedTuple):
    is_healthy: bool


class BlockRange(NamedTuple):
    start: int
    end: int

    def __str__(self):
        return f"{self.start}-{self.end}"

    @classmethod
    def normalized(cls, first: int, last: int) -> 'BlockRange':
        """
        >>> BlockRange.normalized(10, 5)
        BlockRange(start=5, end=10)
        >>> BlockRange.normalized(5, 10)
        BlockRange(start=5, end=10)
        """
        return cls(min(first, last), max(first, last))

    def __contains__(self, item: int) -> bool:  # type: ignore
        """
        >>> 5 in BlockRange(0, 10)
        True
        >>> 10 in BlockRange(0, 10)
        True
        >>> 11 in BlockRange(5, 10)
        False
        """
        return self.start <= item <= self.end

    def __len__(self):
        """
        >>> len(BlockRange(0, 5))
        6
        >>> len(BlockRange(0, 0))
        1
        """
        return (self.end + 1) - self.start

    def as_range(self) -> List[int]:
        """
        >>> BlockRange(0, 5).as_range()
        [0, 1, 2, 3, 4, 5]
        >>> BlockRange(0, 0).as_range()
        [0]
        """
        return list(range(self.start, self.end + 1))


class RootRange(NamedTuple):
    """
    Catchup range as configured, each bound is a block number or `LATEST`.
    """
    start: BlockBound
    end: BlockBound

    def __str__(self):
        return f"{self.start}-{self.end}"

    def resolve(self, latest: int) -> BlockRange:
        """
        >>> RootRange(10, 'latest').resolve(100)
        BlockRange(start=10, end=100)
        >>> RootRange('latest', 10).resolve(100)
        BlockRange(start=10, end=100)
        """
        start = latest if self.start == LATEST else self.start
        end = latest if self.end == LATEST else self.end
        return BlockRange.normalized(start, end)  # type: ignore

    @property
    def has_latest(self) -> bool:
        return LATEST in (self.start, self.end)
