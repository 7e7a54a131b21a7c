from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from hippo_bridge.models import DeviceState, StateChangeRequest, ThermostatState


logger = logging.getLogger("hippo_bridge.daemon")


class DaemonClientError(Exception):
    pass


class GatewayUnreachable(DaemonClientError):
    pass


class GatewayError(DaemonClientError):
    def __init__(self, *, status_code: int, body: Any) -> None:
        super().__init__(f"hippoledd returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class DecodeError(DaemonClientError):
    pass


class DaemonClient:
    """
    Thin async client for the hippoledd web API.

    Every call is a single attempt bounded by a deadline. Failures surface as
    one of the ``DaemonClientError`` subclasses and are never retried here.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client:
            return self._client
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_seconds),
            headers={"Accept": "application/json"},
            transport=self._transport,
        )
        return self._client

    async def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: Any | None = None,
        timeout: float | None = None,
    ) -> Any:
        client = await self._get_client()
        deadline = self._timeout_seconds if timeout is None else timeout

        logger.info("%s %s%s", method, self._base_url, path)
        try:
            resp = await client.request(method, path, json=json_body, timeout=httpx.Timeout(deadline))
        except httpx.TransportError as exc:
            # Covers connect/read failures and deadline expiry alike.
            logger.warning("%s %s%s failed: %s", method, self._base_url, path, exc)
            raise GatewayUnreachable(f"hippoledd unreachable: {exc}") from exc

        logger.info("hippoledd responds %s for %s %s", resp.status_code, method, path)

        if resp.status_code != 200:
            try:
                body: Any = resp.json()
            except ValueError:
                body = resp.text
            raise GatewayError(status_code=resp.status_code, body=body)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"hippoledd sent malformed JSON for {path}") from exc

    async def read_state(self, endpoint_id: str, *, timeout: float | None = None) -> DeviceState:
        body = await self.request_json(method="GET", path=f"/webapi/lamp/{_segment(endpoint_id)}", timeout=timeout)
        return _decode(DeviceState.from_json, body, what=f"lamp {endpoint_id}")

    async def write_state(
        self,
        endpoint_id: str,
        change: StateChangeRequest,
        *,
        timeout: float | None = None,
    ) -> None:
        await self.request_json(
            method="POST",
            path=f"/webapi/lampstate/{_segment(endpoint_id)}",
            json_body=change.to_json(),
            timeout=timeout,
        )

    async def list_devices(self, *, timeout: float | None = None) -> list[DeviceState]:
        body = await self.request_json(method="GET", path="/webapi/lamps", timeout=timeout)
        if not isinstance(body, list):
            raise DecodeError("lamp list is not a JSON array")
        return [_decode(DeviceState.from_json, item, what="lamp list entry") for item in body]

    async def read_thermostat(self, *, timeout: float | None = None) -> ThermostatState:
        body = await self.request_json(method="GET", path="/webapi/state/", timeout=timeout)
        return _decode(ThermostatState.from_json, body, what="thermostat")

    async def set_target_temperature(self, value: float, *, timeout: float | None = None) -> None:
        await self.request_json(
            method="POST",
            path="/webapi/targettemp",
            json_body={"TargetTemperature": value},
            timeout=timeout,
        )

    async def adjust_target_temperature(self, delta: float, *, timeout: float | None = None) -> None:
        await self.request_json(
            method="POST",
            path="/webapi/tempdelta",
            json_body={"Delta": delta},
            timeout=timeout,
        )


def _decode(parse, body: Any, *, what: str):
    try:
        return parse(body)
    except ValueError as exc:
        raise DecodeError(f"malformed {what}: {exc}") from exc


def _segment(endpoint_id: str) -> str:
    # Lamp names are free text; "#", "?" and "/" must stay inside the segment.
    return quote(endpoint_id, safe="")
