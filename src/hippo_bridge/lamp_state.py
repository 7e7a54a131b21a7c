"""
Next-state computation for lamp directives.

Every function here is pure: it takes the freshly read ``DeviceState`` and
returns a ``LampTransition`` holding the state the lamp will be in after the
write plus the minimal ``StateChangeRequest`` that gets it there. Nothing is
mutated in place and nothing talks to the daemon.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from hippo_bridge.classifier import UnsupportedDirective
from hippo_bridge.colors import hsv_to_rgb, rgb_to_hsv, with_brightness
from hippo_bridge.models import Capability, ContextProperty, DeviceState, StateChangeRequest
from hippo_bridge.schemas import AdjustBrightnessPayload, SetBrightnessPayload, SetColorPayload


UNCERTAINTY_MS = 1000


@dataclass(frozen=True)
class LampTransition:
    state: DeviceState
    change: StateChangeRequest


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def set_power(state: DeviceState, on: bool) -> LampTransition:
    # Always written, even when the lamp is already in the requested state.
    return LampTransition(
        state=replace(state, on=on),
        change=StateChangeRequest(name=state.name, on=on, on_changed=True),
    )


def set_brightness(state: DeviceState, brightness: float) -> LampTransition:
    target = _clamp_percent(brightness)
    change = StateChangeRequest(name=state.name)
    next_state = state
    if abs(target - state.brightness) > 1e-9:
        rgb = with_brightness(state.rgb, target)
        if rgb != state.rgb:
            next_state = replace(state, rgb=rgb)
            change = replace(change, rgb=rgb, brightness_changed=True)
    return apply_power_on_rule(LampTransition(state=next_state, change=change))


def adjust_brightness(state: DeviceState, delta: float) -> LampTransition:
    return set_brightness(state, state.brightness + delta)


def apply_power_on_rule(transition: LampTransition) -> LampTransition:
    """A lamp left with non-zero brightness must be on.

    Alexa does not send a separate TurnOn when the user says "set the lamp to
    40%", so raising the brightness of a lamp that is off switches it on.
    """
    state = transition.state
    if state.brightness > 0 and not state.on:
        return LampTransition(
            state=replace(state, on=True),
            change=replace(transition.change, on=True, on_changed=True),
        )
    return transition


def set_color(state: DeviceState, hue: float, saturation: float, brightness: float) -> LampTransition:
    """Apply an Alexa colour (saturation/brightness as fractions) at the lamp's current brightness.

    The requested brightness only matters for a lamp that is fully dark,
    where keeping the stored value would turn any colour into black.
    """
    value = state.brightness
    if value <= 0:
        value = brightness * 100.0
    rgb = hsv_to_rgb(hue, saturation * 100.0, value)
    return LampTransition(
        state=replace(state, rgb=rgb),
        change=StateChangeRequest(name=state.name, rgb=rgb, color_changed=True),
    )


_REQUIRED_CAPABILITY: dict[str, Capability] = {
    "turnon": Capability.POWER,
    "turnoff": Capability.POWER,
    "setbrightness": Capability.BRIGHTNESS,
    "adjustbrightness": Capability.BRIGHTNESS,
    "setcolor": Capability.COLOR,
}


def required_capability(namespace: str, name: str) -> Capability:
    """Capability a lamp directive needs; rejects name/namespace pairs that do not belong together."""
    capability = _REQUIRED_CAPABILITY.get(name.lower())
    if capability is None or capability.value.lower() != namespace.lower():
        raise UnsupportedDirective(
            error_type="INVALID_DIRECTIVE",
            message=f"Unsupported directive: {namespace}.{name}",
        )
    return capability


def compute_lamp_change(state: DeviceState, namespace: str, name: str, payload: dict[str, Any]) -> LampTransition:
    op = name.lower()
    capability = required_capability(namespace, name)
    if capability not in state.capabilities:
        raise UnsupportedDirective(
            error_type="INVALID_DIRECTIVE",
            message=f"Endpoint {state.endpoint_id} does not support {capability.value}",
        )

    if op == "turnon":
        return set_power(state, True)
    if op == "turnoff":
        return set_power(state, False)
    if op == "setbrightness":
        return set_brightness(state, SetBrightnessPayload.model_validate(payload).brightness)
    if op == "adjustbrightness":
        return adjust_brightness(state, AdjustBrightnessPayload.model_validate(payload).brightnessDelta)
    color = SetColorPayload.model_validate(payload).color
    return set_color(state, color.hue, color.saturation, color.brightness)


def lamp_properties(state: DeviceState) -> list[ContextProperty]:
    caps = state.capabilities
    props = [
        ContextProperty(
            namespace=Capability.POWER.value,
            name="powerState",
            value="ON" if state.on else "OFF",
            uncertainty_ms=UNCERTAINTY_MS,
        ),
        ContextProperty(
            namespace=Capability.HEALTH.value,
            name="connectivity",
            value={"value": "OK" if state.online else "UNREACHABLE"},
            uncertainty_ms=UNCERTAINTY_MS,
        ),
    ]
    hsv = rgb_to_hsv(state.rgb.r, state.rgb.g, state.rgb.b)
    if Capability.BRIGHTNESS in caps:
        props.append(
            ContextProperty(
                namespace=Capability.BRIGHTNESS.value,
                name="brightness",
                value=int(round(hsv.v)),
                uncertainty_ms=UNCERTAINTY_MS,
            )
        )
    if Capability.COLOR in caps:
        props.append(
            ContextProperty(
                namespace=Capability.COLOR.value,
                name="color",
                value={
                    "hue": round(hsv.h, 1),
                    "saturation": round(hsv.s / 100.0, 4),
                    "brightness": round(hsv.v / 100.0, 4),
                },
                uncertainty_ms=UNCERTAINTY_MS,
            )
        )
    return props
