from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from hippo_bridge.colors import RGB, rgb_to_hsv


class NodeType(IntEnum):
    LEGACY = 0
    DIMMABLE = 1
    COLOR_DIMMABLE = 2
    RGB = 3
    SWITCH = 4


class Capability(str, Enum):
    POWER = "Alexa.PowerController"
    HEALTH = "Alexa.EndpointHealth"
    BRIGHTNESS = "Alexa.BrightnessController"
    COLOR = "Alexa.ColorController"
    THERMOSTAT = "Alexa.ThermostatController"
    TEMPERATURE = "Alexa.TemperatureSensor"


THERMOSTAT_CAPABILITIES: tuple[Capability, ...] = (
    Capability.THERMOSTAT,
    Capability.TEMPERATURE,
    Capability.HEALTH,
)


def effective_node_type(raw: int) -> NodeType:
    # Old daemons report 0, newer ones may report types we don't know yet; both behave as RGB.
    if raw <= 0 or raw > NodeType.SWITCH:
        return NodeType.RGB
    return NodeType(raw)


def lamp_capabilities(node_type: int) -> tuple[Capability, ...]:
    node = effective_node_type(node_type)
    caps = [Capability.POWER, Capability.HEALTH]
    if node < NodeType.SWITCH:
        caps.append(Capability.BRIGHTNESS)
    if node == NodeType.RGB:
        caps.append(Capability.COLOR)
    return tuple(caps)


def lamp_description(node_type: int) -> str:
    caps = lamp_capabilities(node_type)
    if Capability.COLOR in caps:
        return "Lamp with color and brightness control"
    if Capability.BRIGHTNESS in caps:
        return "Lamp with brightness control"
    return "Switch"


def _require(payload: Any, key: str, kind: type | tuple[type, ...]) -> Any:
    if not isinstance(payload, dict):
        raise ValueError(f"expected JSON object, got {type(payload).__name__}")
    value = payload.get(key)
    # bool is an int subclass; don't let True pass as a channel value.
    if value is None or not isinstance(value, kind) or (isinstance(value, bool) and bool not in _as_tuple(kind)):
        raise ValueError(f"field {key!r} missing or not {_kind_name(kind)}")
    return value


def _as_tuple(kind: type | tuple[type, ...]) -> tuple[type, ...]:
    return kind if isinstance(kind, tuple) else (kind,)


def _kind_name(kind: type | tuple[type, ...]) -> str:
    return "/".join(k.__name__ for k in _as_tuple(kind))


@dataclass(frozen=True)
class DeviceState:
    name: str
    on: bool
    rgb: RGB
    node_type: int
    online: bool = True

    @property
    def endpoint_id(self) -> str:
        return self.name

    @property
    def brightness(self) -> float:
        return rgb_to_hsv(self.rgb.r, self.rgb.g, self.rgb.b).v

    @property
    def capabilities(self) -> tuple[Capability, ...]:
        return lamp_capabilities(self.node_type)

    @staticmethod
    def from_json(payload: Any) -> "DeviceState":
        online = payload.get("Online", True) if isinstance(payload, dict) else True
        return DeviceState(
            name=_require(payload, "Name", str),
            on=_require(payload, "On", bool),
            rgb=RGB(
                r=int(_require(payload, "R", int)),
                g=int(_require(payload, "G", int)),
                b=int(_require(payload, "B", int)),
            ),
            node_type=int(_require(payload, "NodeType", int)),
            online=bool(online),
        )


@dataclass(frozen=True)
class ThermostatState:
    room_temperature: float
    target_temperature: float
    heating_on: bool
    online: bool = True

    @staticmethod
    def from_json(payload: Any) -> "ThermostatState":
        online = payload.get("Online", True) if isinstance(payload, dict) else True
        return ThermostatState(
            room_temperature=float(_require(payload, "RoomTemperature", (int, float))),
            target_temperature=float(_require(payload, "TargetTemperature", (int, float))),
            heating_on=_require(payload, "HeatingOn", bool),
            online=bool(online),
        )


@dataclass(frozen=True)
class StateChangeRequest:
    """
    Write-only delta for one lamp.

    Only fields whose flag is set are sent, so a brightness change never
    overwrites an on/off toggle the daemon received in between.
    """

    name: str
    on: bool | None = None
    rgb: RGB | None = None
    on_changed: bool = False
    brightness_changed: bool = False
    color_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return self.on_changed or self.brightness_changed or self.color_changed

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "Name": self.name,
            "OnChanged": self.on_changed,
            "BrightnessChanged": self.brightness_changed,
            "ColorChanged": self.color_changed,
        }
        if self.on_changed:
            body["On"] = bool(self.on)
        if (self.brightness_changed or self.color_changed) and self.rgb is not None:
            body["R"] = self.rgb.r
            body["G"] = self.rgb.g
            body["B"] = self.rgb.b
        return body


@dataclass(frozen=True)
class ContextProperty:
    namespace: str
    name: str
    value: Any
    uncertainty_ms: int = 1000
