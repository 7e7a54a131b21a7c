import json
import logging

import httpx
import pytest

from hippo_bridge.colors import RGB
from hippo_bridge.daemon_client import DaemonClient, DecodeError, GatewayError, GatewayUnreachable
from hippo_bridge.models import StateChangeRequest


def _client(handler) -> DaemonClient:
    return DaemonClient(
        base_url="http://hippoledd.test:8080",
        timeout_seconds=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_read_state_decodes_lamp():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/webapi/lamp/Kitchen"
        return httpx.Response(200, json={"Name": "Kitchen", "On": True, "R": 1, "G": 2, "B": 3, "NodeType": 1})

    client = _client(handler)
    try:
        state = await client.read_state("Kitchen")
        assert state.name == "Kitchen"
        assert state.rgb == RGB(1, 2, 3)
        assert state.node_type == 1
        assert state.online is True
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_non_200_raises_gateway_error_with_body():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "no such lamp"})

    client = _client(handler)
    try:
        with pytest.raises(GatewayError) as exc:
            await client.read_state("Nope")
        assert exc.value.status_code == 404
        assert exc.value.body == {"error": "no such lamp"}
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_connect_failure_raises_gateway_unreachable():
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    try:
        with pytest.raises(GatewayUnreachable):
            await client.list_devices()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_deadline_expiry_raises_gateway_unreachable():
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.extensions["timeout"]["read"] == 0.25
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(handler)
    try:
        with pytest.raises(GatewayUnreachable):
            await client.read_thermostat(timeout=0.25)
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_malformed_json_raises_decode_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"{not json", headers={"content-type": "application/json"})

    client = _client(handler)
    try:
        with pytest.raises(DecodeError):
            await client.read_state("Kitchen")
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_missing_fields_raise_decode_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"Name": "Kitchen", "On": "yes"}])

    client = _client(handler)
    try:
        with pytest.raises(DecodeError):
            await client.list_devices()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_write_state_posts_only_changed_fields():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200)

    client = _client(handler)
    try:
        change = StateChangeRequest(name="Kitchen", rgb=RGB(10, 20, 30), brightness_changed=True)
        await client.write_state("Kitchen", change)
    finally:
        await client.close()

    assert seen["method"] == "POST"
    assert seen["path"] == "/webapi/lampstate/Kitchen"
    assert seen["body"] == {
        "Name": "Kitchen",
        "OnChanged": False,
        "BrightnessChanged": True,
        "ColorChanged": False,
        "R": 10,
        "G": 20,
        "B": 30,
    }


@pytest.mark.asyncio
async def test_thermostat_writes_hit_dedicated_endpoints():
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, json.loads(request.content.decode("utf-8"))))
        return httpx.Response(200, json={})

    client = _client(handler)
    try:
        await client.set_target_temperature(21.5)
        await client.adjust_target_temperature(-1.0)
    finally:
        await client.close()

    assert calls == [
        ("/webapi/targettemp", {"TargetTemperature": 21.5}),
        ("/webapi/tempdelta", {"Delta": -1.0}),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "encoded"),
    [
        ("Desk#2", "Desk%232"),
        ("Hall?x", "Hall%3Fx"),
        ("a/b", "a%2Fb"),
        ("Living Room", "Living%20Room"),
    ],
)
async def test_lamp_name_is_encoded_as_one_path_segment(name, encoded):
    seen = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.raw_path.decode("ascii")))
        if request.method == "POST":
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"Name": name, "On": True, "R": 1, "G": 2, "B": 3, "NodeType": 3})

    client = _client(handler)
    try:
        state = await client.read_state(name)
        await client.write_state(name, StateChangeRequest(name=name, on=False, on_changed=True))
    finally:
        await client.close()

    assert state.name == name
    assert seen == [
        ("GET", f"/webapi/lamp/{encoded}"),
        ("POST", f"/webapi/lampstate/{encoded}"),
    ]


@pytest.mark.asyncio
async def test_every_call_logs_url_and_status(caplog):
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/webapi/lamp/Kitchen":
            return httpx.Response(200, json={"Name": "Kitchen", "On": True, "R": 1, "G": 2, "B": 3, "NodeType": 1})
        return httpx.Response(503, json={"error": "busy"})

    caplog.set_level(logging.INFO, logger="hippo_bridge.daemon")
    client = _client(handler)
    try:
        await client.read_state("Kitchen")
        with pytest.raises(GatewayError):
            await client.read_state("Porch")
    finally:
        await client.close()

    messages = [record.getMessage() for record in caplog.records if record.name == "hippo_bridge.daemon"]
    assert "GET http://hippoledd.test:8080/webapi/lamp/Kitchen" in messages
    assert "GET http://hippoledd.test:8080/webapi/lamp/Porch" in messages
    assert any("200" in m and "/webapi/lamp/Kitchen" in m for m in messages)
    assert any("503" in m and "/webapi/lamp/Porch" in m for m in messages)
