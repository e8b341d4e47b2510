"""Client tests against a local aiohttp server standing in for the Capacities API."""

from typing import Any, Awaitable, Callable, List

import pytest
from aiohttp import web
from aiohttp import test_utils

from capacities_mcp.client import CapacitiesClient
from capacities_mcp.config import Config
from capacities_mcp.types import CapacitiesAPIError, OutboundCall

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@pytest.fixture
def received() -> List[Any]:
    return []


@pytest.fixture
async def upstream_servers():
    servers: List[test_utils.TestServer] = []
    yield servers
    for server in servers:
        await server.close()


async def make_client(handler: Handler, servers: List[test_utils.TestServer]) -> CapacitiesClient:
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    servers.append(server)
    config = Config(token="test-token", api_base=f"http://{server.host}:{server.port}")
    return CapacitiesClient(config)


async def test_request_sends_credentials_and_json(upstream_servers, received) -> None:
    async def handler(request: web.Request) -> web.Response:
        received.append({
            "method": request.method,
            "path": request.path,
            "headers": {
                name: request.headers.get(name)
                for name in ("Authorization", "Content-Type", "Accept")
            },
            "body": await request.json(),
        })
        return web.json_response({"id": "abc", "title": "Saved"})

    client = await make_client(handler, upstream_servers)
    result = await client.request("/save-weblink", "POST", body={"url": "https://example.com"})

    assert result == {"id": "abc", "title": "Saved"}
    assert len(received) == 1
    call = received[0]
    assert call["method"] == "POST"
    assert call["path"] == "/save-weblink"
    assert call["headers"]["Authorization"] == "Bearer test-token"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["headers"]["Accept"] == "application/json"
    assert call["body"] == {"url": "https://example.com"}


async def test_get_sends_no_body_and_encodes_query(upstream_servers, received) -> None:
    async def handler(request: web.Request) -> web.Response:
        received.append({
            "method": request.method,
            "query": dict(request.query),
            "body": await request.text(),
        })
        return web.json_response({"spaces": []})

    client = await make_client(handler, upstream_servers)
    result = await client.request("/spaces", "GET", params={"filter": "a b&c"})

    assert result == {"spaces": []}
    assert received == [{"method": "GET", "query": {"filter": "a b&c"}, "body": ""}]


async def test_send_uses_outbound_call(upstream_servers, received) -> None:
    async def handler(request: web.Request) -> web.Response:
        received.append((request.method, request.path, await request.json()))
        return web.json_response({"results": []})

    client = await make_client(handler, upstream_servers)
    call = OutboundCall(method="POST", path="/lookup", body={"searchTerm": "x", "spaceId": "s"})
    result = await client.send(call)

    assert result == {"results": []}
    assert received == [("POST", "/lookup", {"searchTerm": "x", "spaceId": "s"})]


@pytest.mark.parametrize("body", ["", "   \n"])
async def test_empty_body_is_empty_result(upstream_servers, body: str) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=200, text=body)

    client = await make_client(handler, upstream_servers)

    assert await client.request("/save-to-daily-note", "POST", body={"mdText": "hi"}) == {}


async def test_server_error_carries_status_and_body(upstream_servers) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=500, text="server exploded")

    client = await make_client(handler, upstream_servers)

    with pytest.raises(CapacitiesAPIError) as exc_info:
        await client.request("/spaces", "GET")

    assert exc_info.value.status == 500
    assert "500" in str(exc_info.value)
    assert "server exploded" in str(exc_info.value)


async def test_error_is_not_retried(upstream_servers, received) -> None:
    async def handler(request: web.Request) -> web.Response:
        received.append(request.path)
        return web.Response(status=503, text="busy")

    client = await make_client(handler, upstream_servers)

    with pytest.raises(CapacitiesAPIError):
        await client.request("/lookup", "POST", body={})
    assert received == ["/lookup"]


async def test_invalid_json_raises(upstream_servers) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=200, text="<html>not json</html>")

    client = await make_client(handler, upstream_servers)

    with pytest.raises(CapacitiesAPIError, match="Invalid JSON"):
        await client.request("/spaces", "GET")


@pytest.mark.parametrize("body", ["null", "[1, 2]", '"str"', "42"])
async def test_non_object_json_raises(upstream_servers, body: str) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=200, text=body, content_type="application/json")

    client = await make_client(handler, upstream_servers)

    with pytest.raises(CapacitiesAPIError, match="Expected a JSON object") as exc_info:
        await client.request("/spaces", "GET")
    assert exc_info.value.status == 200


async def test_undecodable_body_raises(upstream_servers) -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(
            status=200,
            body=b'{"spaces": "\xff\xfe"}',
            content_type="application/json",
            charset="utf-8",
        )

    client = await make_client(handler, upstream_servers)

    with pytest.raises(CapacitiesAPIError, match="not valid text"):
        await client.request("/spaces", "GET")
