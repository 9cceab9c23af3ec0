import prometheus_client
from aiohttp import web


async def metrics(request: web.Request) -> web.Response:
    body = prometheus_client.exposition.generate_latest().decode('utf-8')
    content_type = prometheus_client.exposition.CONTENT_TYPE_LATEST

    # `CONTENT_TYPE_LATEST` carries a charset and `aiohttp.web.Response`
    # prohibits charsets in `content_type` kwarg, so it goes to headers.
    return web.Response(body=body, headers={'Content-Type': content_type})
