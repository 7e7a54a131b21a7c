from __future__ import annotations

from enum import Enum
from typing import Any

from hippo_bridge.models import Capability


SUPPORTED_PAYLOAD_VERSION = "3"


class DirectiveKind(str, Enum):
    AUTHORIZATION = "authorization"
    DISCOVERY = "discovery"
    REPORT_STATE = "report_state"
    LAMP_CHANGE = "lamp_change"
    THERMOSTAT_CHANGE = "thermostat_change"


class UnsupportedDirective(Exception):
    def __init__(self, *, error_type: str, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message


_LAMP_NAMESPACES = {
    Capability.POWER.value.lower(),
    Capability.BRIGHTNESS.value.lower(),
    Capability.COLOR.value.lower(),
}


def check_payload_version(payload_version: Any) -> None:
    if payload_version != SUPPORTED_PAYLOAD_VERSION:
        raise UnsupportedDirective(
            error_type="INTERNAL_ERROR",
            message=f"This skill only supports Smart Home API version {SUPPORTED_PAYLOAD_VERSION}"
            f" (got {payload_version!r})",
        )


def classify(namespace: str, name: str) -> DirectiveKind:
    ns = (namespace or "").lower()
    if ns == "alexa.authorization":
        return DirectiveKind.AUTHORIZATION
    if ns == "alexa.discovery":
        return DirectiveKind.DISCOVERY
    if ns == "alexa" and (name or "").lower() == "reportstate":
        return DirectiveKind.REPORT_STATE
    if ns in _LAMP_NAMESPACES:
        return DirectiveKind.LAMP_CHANGE
    if ns == Capability.THERMOSTAT.value.lower():
        return DirectiveKind.THERMOSTAT_CHANGE
    raise UnsupportedDirective(
        error_type="INVALID_DIRECTIVE",
        message=f"Unsupported namespace: {namespace}",
    )
