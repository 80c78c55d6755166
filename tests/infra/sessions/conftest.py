from __future__ import annotations

import aiohttp.web
import pytest_asyncio


@pytest_asyncio.fixture
async def test_server(aiohttp_server):
    async def handler_post(request):
        data = await request.json()
        return aiohttp.web.json_response({"received": data})

    async def handler_echo_headers(request):
        headers = {k.lower(): v for k, v in request.headers.items()}
        return aiohttp.web.json_response({"headers": headers})

    async def handler_echo_query(request):
        return aiohttp.web.json_response({"query": dict(request.query)})

    async def handler_error(request):
        return aiohttp.web.json_response({"error": "nope"}, status=400)

    app = aiohttp.web.Application()
    app.router.add_post("/post", handler_post)
    app.router.add_post("/echo-headers", handler_echo_headers)
    app.router.add_post("/echo-query", handler_echo_query)
    app.router.add_post("/error", handler_error)

    server = await aiohttp_server(app)
    return server
