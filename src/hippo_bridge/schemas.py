from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RequestHeader(BaseModel):
    token: str | None = Field(default=None, description="Caller bearer token; must be present and non-empty.")


class DirectiveRequest(BaseModel):
    """Outer HTTP body wrapping one Alexa Smart Home event."""

    header: RequestHeader = Field(default_factory=RequestHeader)
    payload: dict[str, Any] = Field(
        ...,
        description="The Alexa event as received by the skill, i.e. `{ \"directive\": {...} }`.",
    )


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


class DirectiveHeader(_Lenient):
    namespace: str
    name: str
    payloadVersion: Any = None
    messageId: str | None = None
    correlationToken: str | None = None


class Scope(_Lenient):
    type: str | None = None
    token: str | None = None


class DirectiveEndpoint(_Lenient):
    endpointId: str
    scope: Scope = Field(default_factory=Scope)
    cookie: dict[str, Any] = Field(default_factory=dict)


class Directive(_Lenient):
    header: DirectiveHeader
    endpoint: DirectiveEndpoint | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def token(self) -> str | None:
        if self.endpoint and self.endpoint.scope.token:
            return self.endpoint.scope.token
        scope = self.payload.get("scope")
        if isinstance(scope, dict) and isinstance(scope.get("token"), str):
            return scope["token"]
        grantee = self.payload.get("grantee")
        if isinstance(grantee, dict) and isinstance(grantee.get("token"), str):
            return grantee["token"]
        return None


# Directive payloads. Alexa sends percentages as ints and colour components as fractions.


class SetBrightnessPayload(_Lenient):
    brightness: int = Field(..., ge=0, le=100)


class AdjustBrightnessPayload(_Lenient):
    brightnessDelta: int = Field(..., ge=-100, le=100)


class Color(_Lenient):
    hue: float = Field(..., ge=0.0, le=360.0)
    saturation: float = Field(..., ge=0.0, le=1.0)
    brightness: float = Field(..., ge=0.0, le=1.0)


class SetColorPayload(_Lenient):
    color: Color


class Temperature(_Lenient):
    value: float
    scale: str = "CELSIUS"


class SetTargetTemperaturePayload(_Lenient):
    targetSetpoint: Temperature


class AdjustTargetTemperaturePayload(_Lenient):
    targetSetpointDelta: Temperature


class ErrorBody(BaseModel):
    code: str = Field(..., description="Machine-readable error code.")
    message: str = Field(..., description="Human-readable error message.")


class TransportErrorResponse(BaseModel):
    error: ErrorBody


class HealthResponse(BaseModel):
    ok: bool = Field(..., description="Process is alive.")


class ReadinessResponse(BaseModel):
    ready: bool = Field(..., description="True when hippoledd answers the lamp listing.")
    reason: str | None = Field(default=None, description="Short machine-readable reason when not ready.")
    details: Any | None = Field(default=None, description="Optional extra details for debugging.")
