import json

import pytest

from titleseed.infra.http_defaults import DEFAULT_USER_AGENT
from titleseed.schemas import SessionConfig

from .utils import SUPPORTED_BACKENDS, make_session


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
@pytest.mark.asyncio
async def test_post_json_round_trip(backend, test_server):
    base = str(test_server.make_url("/"))

    async with make_session(backend, SessionConfig(http2=False)) as s:
        r = await s.post(base + "post", json={"a": 1})

    assert r.status == 200
    assert r.ok
    assert json.loads(r.content.decode()) == {"received": {"a": 1}}
    assert r.json() == {"received": {"a": 1}}
    assert "application/json" in r.headers["Content-Type"]


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
@pytest.mark.asyncio
async def test_error_status_is_returned_not_raised(backend, test_server):
    base = str(test_server.make_url("/"))

    async with make_session(backend, SessionConfig(http2=False)) as s:
        r = await s.post(base + "error", json={})

    assert r.status == 400
    assert not r.ok
    assert r.json() == {"error": "nope"}


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
@pytest.mark.asyncio
async def test_per_request_headers_and_params(backend, test_server):
    base = str(test_server.make_url("/"))

    async with make_session(backend, SessionConfig(http2=False)) as s:
        r1 = await s.post(base + "echo-headers", headers={"X-SecretKey": "k"}, json={})
        r2 = await s.post(base + "echo-query", params={"q": "1"}, json={})

    assert r1.json()["headers"].get("x-secretkey") == "k"
    assert r2.json() == {"query": {"q": "1"}}


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
def test_headers_property_returns_copy(backend):
    cfg = SessionConfig(headers={"A": "1", "B": "2"})
    s = make_session(backend, cfg)

    h1 = s.headers
    h1["A"] = "999"
    h1["C"] = "new"

    assert s.headers == {"A": "1", "B": "2"}


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
def test_default_headers_carry_user_agent(backend):
    s = make_session(backend, SessionConfig())
    assert s.headers["User-Agent"] == DEFAULT_USER_AGENT
    assert s.headers["Content-Type"] == "application/json"


@pytest.mark.parametrize("backend", sorted(SUPPORTED_BACKENDS))
@pytest.mark.asyncio
async def test_user_agent_override_sent_to_server(backend, test_server):
    custom_ua = "TitleSeedTestAgent/1.0"
    cfg = SessionConfig(user_agent=custom_ua, http2=False)
    base = str(test_server.make_url("/"))

    async with make_session(backend, cfg) as s:
        r = await s.post(base + "echo-headers", json={})
        headers = r.json()["headers"]

    assert headers.get("user-agent") == custom_ua
