from typing import Any

import pytest

from hippo_bridge.config import AppConfig


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        port=8000,
        daemon_host="hippoledd.test",
        daemon_port=8080,
        daemon_timeout_seconds=2.0,
        auth_tokens=[],
        thermostat_enabled=False,
        thermostat_endpoint_id="thermostat",
        log_level="DEBUG",
    )


def lamp_json(name: str, *, on: bool = True, rgb=(255, 255, 255), node_type: int = 3, online: bool = True) -> dict[str, Any]:
    r, g, b = rgb
    return {"Name": name, "On": on, "R": r, "G": g, "B": b, "NodeType": node_type, "Online": online}


def directive(
    namespace: str,
    name: str,
    *,
    endpoint_id: str | None = "Kitchen",
    payload: dict[str, Any] | None = None,
    payload_version: Any = "3",
) -> dict[str, Any]:
    event: dict[str, Any] = {
        "directive": {
            "header": {
                "namespace": namespace,
                "name": name,
                "payloadVersion": payload_version,
                "messageId": "msg-1",
                "correlationToken": "corr-1",
            },
            "payload": payload or {},
        }
    }
    if endpoint_id is not None:
        event["directive"]["endpoint"] = {
            "endpointId": endpoint_id,
            "scope": {"type": "BearerToken", "token": "alexa-token"},
        }
    return event


def properties_by_name(response: dict[str, Any]) -> dict[tuple[str, str], Any]:
    return {(p["namespace"], p["name"]): p["value"] for p in response["context"]["properties"]}
