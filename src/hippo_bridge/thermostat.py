from __future__ import annotations

from hippo_bridge.models import Capability, ContextProperty, ThermostatState
from hippo_bridge.schemas import Temperature


UNCERTAINTY_MS = 1000


def to_celsius(temperature: Temperature) -> float:
    scale = temperature.scale.upper()
    if scale == "FAHRENHEIT":
        return (temperature.value - 32.0) * 5.0 / 9.0
    if scale == "KELVIN":
        return temperature.value - 273.15
    return temperature.value


def delta_to_celsius(delta: Temperature) -> float:
    # A difference has no offset, only the scale factor.
    if delta.scale.upper() == "FAHRENHEIT":
        return delta.value * 5.0 / 9.0
    return delta.value


def _celsius(value: float) -> dict[str, object]:
    return {"value": round(value, 1), "scale": "CELSIUS"}


def thermostat_properties(state: ThermostatState) -> list[ContextProperty]:
    return [
        ContextProperty(
            namespace=Capability.THERMOSTAT.value,
            name="targetSetpoint",
            value=_celsius(state.target_temperature),
            uncertainty_ms=UNCERTAINTY_MS,
        ),
        ContextProperty(
            namespace=Capability.THERMOSTAT.value,
            name="thermostatMode",
            value="HEAT" if state.heating_on else "OFF",
            uncertainty_ms=UNCERTAINTY_MS,
        ),
        ContextProperty(
            namespace=Capability.TEMPERATURE.value,
            name="temperature",
            value=_celsius(state.room_temperature),
            uncertainty_ms=UNCERTAINTY_MS,
        ),
        ContextProperty(
            namespace=Capability.HEALTH.value,
            name="connectivity",
            value={"value": "OK" if state.online else "UNREACHABLE"},
            uncertainty_ms=UNCERTAINTY_MS,
        ),
    ]
