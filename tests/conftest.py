from __future__ import annotations

import aiohttp.web
import pytest_asyncio


@pytest_asyncio.fixture
async def admin_server(aiohttp_server):
    """A fake Admin API recording every call it receives.

    ``server.responses`` maps an operation name to ``(status, body)``; a
    ``str`` body is sent as-is, anything else as JSON. Operations without an
    entry answer with an empty success envelope.
    """
    calls: list[dict] = []
    responses: dict[str, tuple[int, object]] = {}

    async def handler(request):
        op = request.match_info["op"]
        calls.append(
            {
                "op": op,
                "secret": request.headers.get("X-SecretKey"),
                "content_type": request.headers.get("Content-Type"),
                "body": await request.json(),
            }
        )
        default = (200, {"code": 200, "status": "OK", "data": {}})
        status, body = responses.get(op, default)
        if isinstance(body, str):
            return aiohttp.web.Response(text=body, status=status)
        return aiohttp.web.json_response(body, status=status)

    app = aiohttp.web.Application()
    app.router.add_post("/Admin/{op}", handler)

    server = await aiohttp_server(app)
    server.calls = calls
    server.responses = responses
    return server
