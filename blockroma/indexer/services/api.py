import json
from functools import partial
from typing import Any

from aiohttp import web

from blockroma import settings
from blockroma.common import monitoring, services, stats
from blockroma.common.rpc import NodeClient
from blockroma.indexer.database import MainDB
from blockroma.indexer.state import IndexerState


class ApiService(services.ApiService):
    def __init__(
            self,
            state: IndexerState,
            main_db: MainDB,
            client: NodeClient,
            *args: Any, **kwargs: Any
    ) -> None:
        kwargs.setdefault('port', settings.INDEXER_API_PORT)
        kwargs.setdefault('app_maker', make_app)

        super(ApiService, self).__init__(*args, **kwargs)

        self.app['state'] = state
        self.app['main_db'] = main_db
        self.app['client'] = client


def make_app() -> web.Application:
    application = web.Application()
    application.router.add_route('GET', '/healthcheck', healthcheck)
    application.router.add_route('GET', '/state', get_state)
    application.router.add_route('GET', '/metrics', monitoring.metrics)

    return application


async def get_state(request: web.Request) -> web.Response:
    state: IndexerState = request.app['state']
    return web.json_response(data=state.as_dict(), dumps=partial(json.dumps, indent=2))


async def healthcheck(request: web.Request) -> web.Response:
    main_db: MainDB = request.app['main_db']

    main_db_stats = await stats.get_db_stats(main_db.engine)
    node_stats = await stats.get_node_stats(request.app['client'])
    loop_stats = await stats.get_loop_stats()

    healthy = all(
        (
            main_db_stats.is_healthy,
            node_stats.is_healthy,
            loop_stats.is_healthy,
        )
    )
    status = 200 if healthy else 400

    data = {
        'healthy': healthy,
        'version': settings.VERSION,
        'isMainDbHealthy': main_db_stats.is_healthy,
        'isNodeHealthy': node_stats.is_healthy,
        'isLoopHealthy': loop_stats.is_healthy,
    }

    return web.json_response(data=data, status=status)
