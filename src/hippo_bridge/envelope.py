from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from hippo_bridge.models import ContextProperty


PAYLOAD_VERSION = "3"


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-4] + "Z"


class AlexaResponse:
    """Builds one Alexa Smart Home v3 event.

    Callers only add properties, endpoints and a payload; ``get()`` returns a
    plain dict ready for JSON serialization.
    """

    def __init__(
        self,
        *,
        namespace: str = "Alexa",
        name: str = "Response",
        correlation_token: str | None = None,
        endpoint_id: str | None = None,
        token: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        self.namespace = namespace
        self.name = name
        self.correlation_token = correlation_token
        self.endpoint_id = endpoint_id
        self.token = token
        self.payload: dict[str, Any] = dict(payload or {})
        self.properties: list[dict[str, Any]] = []
        self.endpoints: list[dict[str, Any]] = []

    @classmethod
    def error(
        cls,
        *,
        error_type: str,
        message: str,
        correlation_token: str | None = None,
        endpoint_id: str | None = None,
        token: str | None = None,
    ) -> "AlexaResponse":
        return cls(
            name="ErrorResponse",
            correlation_token=correlation_token,
            endpoint_id=endpoint_id,
            token=token,
            payload={"type": error_type, "message": message},
        )

    def add_context_property(self, prop: ContextProperty) -> None:
        self.properties.append(
            {
                "namespace": prop.namespace,
                "name": prop.name,
                "value": prop.value,
                "timeOfSample": _utc_now(),
                "uncertaintyInMilliseconds": prop.uncertainty_ms,
            }
        )

    def add_context_properties(self, props: list[ContextProperty]) -> None:
        for prop in props:
            self.add_context_property(prop)

    @staticmethod
    def capability(interface: str, supported: list[str] | None = None, *, version: str = "3") -> dict[str, Any]:
        cap: dict[str, Any] = {"type": "AlexaInterface", "interface": interface, "version": version}
        if supported is not None:
            cap["properties"] = {
                "supported": [{"name": name} for name in supported],
                "proactivelyReported": False,
                "retrievable": True,
            }
        return cap

    def add_payload_endpoint(
        self,
        *,
        endpoint_id: str,
        friendly_name: str,
        description: str,
        manufacturer_name: str,
        display_categories: list[str],
        capabilities: list[dict[str, Any]],
    ) -> None:
        self.endpoints.append(
            {
                "endpointId": endpoint_id,
                "friendlyName": friendly_name,
                "description": description,
                "manufacturerName": manufacturer_name,
                "displayCategories": display_categories,
                "capabilities": capabilities,
            }
        )

    def get(self) -> dict[str, Any]:
        header: dict[str, Any] = {
            "namespace": self.namespace,
            "name": self.name,
            "messageId": str(uuid.uuid4()),
            "payloadVersion": PAYLOAD_VERSION,
        }
        if self.correlation_token:
            header["correlationToken"] = self.correlation_token

        payload = dict(self.payload)
        if self.endpoints or self.name == "Discover.Response":
            payload["endpoints"] = list(self.endpoints)

        event: dict[str, Any] = {"header": header, "payload": payload}
        if self.endpoint_id:
            endpoint: dict[str, Any] = {"endpointId": self.endpoint_id}
            if self.token:
                endpoint["scope"] = {"type": "BearerToken", "token": self.token}
            event["endpoint"] = endpoint

        response: dict[str, Any] = {"event": event}
        if self.properties:
            response["context"] = {"properties": list(self.properties)}
        return response
