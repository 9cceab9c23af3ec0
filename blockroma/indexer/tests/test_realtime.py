import pytest

from blockroma.common.structs import BlockRange
from blockroma.indexer.importer import Importer
from blockroma.indexer.realtime import RealtimeFollower
from blockroma.tests.plugins.node import make_raw_block

pytestmark = pytest.mark.asyncio


@pytest.fixture
def importer(main_db, node_client):
    return Importer(main_db=main_db, client=node_client)


async def test_blocks_are_imported_in_notification_order(importer, main_db, node_client, mocker):
    for number in (5, 6, 7):
        node_client.add_block(make_raw_block(number))
    node_client.notifications = [5, 6, 7]
    import_range = mocker.spy(importer, 'import_range')

    follower = RealtimeFollower(importer, queue_size=1)
    follower.start()
    await follower.producer
    await follower.queue.join()
    await follower.stop()

    assert [call.args[0] for call in import_range.call_args_list] == [
        BlockRange(5, 5),
        BlockRange(6, 6),
        BlockRange(7, 7),
    ]
    assert sorted(block.number for block in main_db.blocks.values()) == [5, 6, 7]


async def test_consumer_error_stops_the_consumer(importer, node_client, mocker):
    node_client.notifications = [5]
    mocker.patch.object(importer, 'import_range', mocker.AsyncMock(side_effect=RuntimeError('boom')))

    follower = RealtimeFollower(importer, queue_size=1)
    follower.start()

    with pytest.raises(RuntimeError):
        await follower.consumer

    with pytest.raises(RuntimeError):
        await follower.wait()

    await follower.stop()
