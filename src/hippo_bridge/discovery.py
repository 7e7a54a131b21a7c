from __future__ import annotations

import logging
from typing import Any

from hippo_bridge.daemon_client import DaemonClient
from hippo_bridge.envelope import AlexaResponse
from hippo_bridge.models import THERMOSTAT_CAPABILITIES, Capability, DeviceState, lamp_description


logger = logging.getLogger("hippo_bridge.discovery")

MANUFACTURER = "HippoTronics"

_SUPPORTED_PROPERTIES: dict[Capability, list[str]] = {
    Capability.POWER: ["powerState"],
    Capability.HEALTH: ["connectivity"],
    Capability.BRIGHTNESS: ["brightness"],
    Capability.COLOR: ["color"],
    Capability.THERMOSTAT: ["targetSetpoint", "thermostatMode"],
    Capability.TEMPERATURE: ["temperature"],
}


def capability_descriptors(capabilities: tuple[Capability, ...]) -> list[dict[str, Any]]:
    descriptors = [AlexaResponse.capability("Alexa")]
    for cap in capabilities:
        descriptor = AlexaResponse.capability(cap.value, _SUPPORTED_PROPERTIES[cap])
        if cap is Capability.THERMOSTAT:
            descriptor["configuration"] = {"supportedModes": ["HEAT", "OFF"]}
        descriptors.append(descriptor)
    return descriptors


def add_lamp_endpoint(response: AlexaResponse, lamp: DeviceState) -> None:
    caps = lamp.capabilities
    response.add_payload_endpoint(
        endpoint_id=lamp.endpoint_id,
        friendly_name=lamp.name,
        description=lamp_description(lamp.node_type),
        manufacturer_name=MANUFACTURER,
        display_categories=["LIGHT"] if Capability.BRIGHTNESS in caps else ["SWITCH"],
        capabilities=capability_descriptors(caps),
    )


def add_thermostat_endpoint(response: AlexaResponse, endpoint_id: str) -> None:
    response.add_payload_endpoint(
        endpoint_id=endpoint_id,
        friendly_name="Thermostat",
        description="Thermostat with room temperature sensor",
        manufacturer_name=MANUFACTURER,
        display_categories=["THERMOSTAT", "TEMPERATURE_SENSOR"],
        capabilities=capability_descriptors(THERMOSTAT_CAPABILITIES),
    )


async def discover(
    daemon: DaemonClient,
    *,
    include_thermostat: bool,
    thermostat_endpoint_id: str,
    timeout: float | None = None,
) -> dict[str, Any]:
    lamps = await daemon.list_devices(timeout=timeout)
    logger.info("discovered %d lamp(s)", len(lamps))

    response = AlexaResponse(namespace="Alexa.Discovery", name="Discover.Response")
    for lamp in lamps:
        add_lamp_endpoint(response, lamp)
    if include_thermostat:
        add_thermostat_endpoint(response, thermostat_endpoint_id)
    return response.get()
