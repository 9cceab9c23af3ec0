import pytest

from blockroma.common.structs import BlockRange
from blockroma.indexer.ranges import chunk_ranges, get_ranges, missing_block_ranges

pytestmark = pytest.mark.asyncio


async def test_missing_block_ranges(main_db):
    main_db.add_blocks(100, 101, 104, 105)

    gaps = await missing_block_ranges(main_db, 100, 106)

    assert gaps == [BlockRange(102, 103), BlockRange(106, 106)]


async def test_missing_block_ranges_normalizes_bounds(main_db):
    main_db.add_blocks(100, 101, 104, 105)

    assert await missing_block_ranges(main_db, 106, 100) == await missing_block_ranges(main_db, 100, 106)


async def test_nothing_is_missing(main_db):
    main_db.add_blocks(1, 2, 3)

    assert await missing_block_ranges(main_db, 1, 3) == []


async def test_get_ranges_coalesces_consecutive_numbers():
    assert get_ranges([1, 2, 3, 5, 7, 8]) == [BlockRange(1, 3), BlockRange(5, 5), BlockRange(7, 8)]


async def test_chunk_ranges():
    chunks = chunk_ranges([BlockRange(100, 109)], batch_size=4)

    assert chunks == [BlockRange(100, 103), BlockRange(104, 107), BlockRange(108, 109)]


async def test_chunk_ranges_keeps_order_and_does_not_merge():
    chunks = chunk_ranges([BlockRange(10, 11), BlockRange(0, 5), BlockRange(12, 12)], batch_size=3)

    assert chunks == [
        BlockRange(10, 11),
        BlockRange(0, 2),
        BlockRange(3, 5),
        BlockRange(12, 12),
    ]


@pytest.mark.parametrize("batch_size", [1, 2, 3, 7, 50])
async def test_chunks_cover_ranges_exactly(batch_size):
    ranges = [BlockRange(0, 20), BlockRange(30, 30), BlockRange(40, 49)]

    chunks = chunk_ranges(ranges, batch_size)

    covered = [number for chunk in chunks for number in chunk.as_range()]
    assert covered == [number for block_range in ranges for number in block_range.as_range()]
    assert all(chunk.start <= chunk.end for chunk in chunks)


@pytest.mark.parametrize("batch_size", [0, -1])
async def test_chunk_ranges_rejects_non_positive_batch(batch_size):
    with pytest.raises(ValueError):
        chunk_ranges([BlockRange(0, 10)], batch_size)
