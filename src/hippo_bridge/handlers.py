from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from hippo_bridge.classifier import DirectiveKind, UnsupportedDirective, check_payload_version, classify
from hippo_bridge.config import AppConfig
from hippo_bridge.daemon_client import DaemonClient, DecodeError, GatewayError, GatewayUnreachable
from hippo_bridge.discovery import discover
from hippo_bridge.envelope import AlexaResponse
from hippo_bridge.lamp_state import compute_lamp_change, lamp_properties, required_capability
from hippo_bridge.schemas import AdjustTargetTemperaturePayload, Directive, SetTargetTemperaturePayload
from hippo_bridge.thermostat import delta_to_celsius, thermostat_properties, to_celsius


logger = logging.getLogger("hippo_bridge.dispatch")


Handler = Callable[[Directive], Awaitable[dict[str, Any]]]


class DirectiveDispatcher:
    def __init__(self, *, daemon: DaemonClient, config: AppConfig) -> None:
        self.daemon = daemon
        self.config = config
        self._handlers: dict[DirectiveKind, Handler] = {
            DirectiveKind.AUTHORIZATION: self._accept_grant,
            DirectiveKind.DISCOVERY: self._discover,
            DirectiveKind.REPORT_STATE: self._report_state,
            DirectiveKind.LAMP_CHANGE: self._lamp_change,
            DirectiveKind.THERMOSTAT_CHANGE: self._thermostat_change,
        }

    @property
    def _timeout(self) -> float:
        return self.config.daemon_timeout_seconds

    async def dispatch(self, event: Any) -> dict[str, Any]:
        if not isinstance(event, dict) or "directive" not in event:
            return self._send(
                AlexaResponse.error(
                    error_type="INVALID_DIRECTIVE",
                    message="Missing key: directive, Is request a valid Alexa directive?",
                ).get()
            )

        try:
            directive = Directive.model_validate(event["directive"])
        except ValidationError as err:
            return self._send(
                AlexaResponse.error(
                    error_type="INVALID_DIRECTIVE",
                    message=f"Malformed directive: {_first_error(err)}",
                ).get()
            )

        header = directive.header
        endpoint_id = directive.endpoint.endpointId if directive.endpoint else None
        logger.info("directive %s.%s endpoint=%s", header.namespace, header.name, endpoint_id)

        def _error(error_type: str, message: str) -> dict[str, Any]:
            return AlexaResponse.error(
                error_type=error_type,
                message=message,
                correlation_token=header.correlationToken,
                endpoint_id=endpoint_id,
                token=directive.token,
            ).get()

        try:
            check_payload_version(header.payloadVersion)
            kind = classify(header.namespace, header.name)
            response = await self._handlers[kind](directive)
        except UnsupportedDirective as err:
            logger.warning("rejected %s.%s: %s", header.namespace, header.name, err.message)
            response = _error(err.error_type, err.message)
        except ValidationError as err:
            logger.warning("invalid payload for %s.%s: %s", header.namespace, header.name, err)
            response = _error("INVALID_DIRECTIVE", f"Invalid payload: {_first_error(err)}")
        except GatewayUnreachable as err:
            logger.warning("hippoledd unreachable for %s.%s: %s", header.namespace, header.name, err)
            response = _error("ENDPOINT_UNREACHABLE", str(err))
        except (GatewayError, DecodeError) as err:
            logger.warning("hippoledd failure for %s.%s: %s", header.namespace, header.name, err)
            response = _error("INVALID_DIRECTIVE", str(err))
        except Exception as err:
            logger.exception("unexpected failure handling %s.%s", header.namespace, header.name)
            response = _error("INTERNAL_ERROR", str(err) or type(err).__name__)

        return self._send(response)

    @staticmethod
    def _send(response: dict[str, Any]) -> dict[str, Any]:
        header = response["event"]["header"]
        logger.info("response %s.%s", header["namespace"], header["name"])
        logger.debug("response body %s", json.dumps(response, separators=(",", ":")))
        return response

    @staticmethod
    def _require_endpoint(directive: Directive) -> str:
        if directive.endpoint is None:
            raise UnsupportedDirective(
                error_type="INVALID_DIRECTIVE",
                message=f"{directive.header.name} requires an endpoint",
            )
        return directive.endpoint.endpointId

    def _is_thermostat(self, endpoint_id: str) -> bool:
        # A disabled thermostat is not discovered, so its id is treated as a lamp name.
        return self.config.thermostat_enabled and endpoint_id == self.config.thermostat_endpoint_id

    async def _accept_grant(self, directive: Directive) -> dict[str, Any]:
        return AlexaResponse(namespace="Alexa.Authorization", name="AcceptGrant.Response").get()

    async def _discover(self, directive: Directive) -> dict[str, Any]:
        return await discover(
            self.daemon,
            include_thermostat=self.config.thermostat_enabled,
            thermostat_endpoint_id=self.config.thermostat_endpoint_id,
            timeout=self._timeout,
        )

    async def _report_state(self, directive: Directive) -> dict[str, Any]:
        endpoint_id = self._require_endpoint(directive)
        if self._is_thermostat(endpoint_id):
            props = thermostat_properties(await self.daemon.read_thermostat(timeout=self._timeout))
        else:
            props = lamp_properties(await self.daemon.read_state(endpoint_id, timeout=self._timeout))

        response = AlexaResponse(
            name="StateReport",
            correlation_token=directive.header.correlationToken,
            endpoint_id=endpoint_id,
            token=directive.token,
        )
        response.add_context_properties(props)
        return response.get()

    async def _lamp_change(self, directive: Directive) -> dict[str, Any]:
        endpoint_id = self._require_endpoint(directive)
        required_capability(directive.header.namespace, directive.header.name)
        current = await self.daemon.read_state(endpoint_id, timeout=self._timeout)
        transition = compute_lamp_change(current, directive.header.namespace, directive.header.name, directive.payload)
        if transition.change.has_changes:
            await self.daemon.write_state(endpoint_id, transition.change, timeout=self._timeout)

        response = AlexaResponse(
            correlation_token=directive.header.correlationToken,
            endpoint_id=endpoint_id,
            token=directive.token,
        )
        response.add_context_properties(lamp_properties(transition.state))
        return response.get()

    async def _thermostat_change(self, directive: Directive) -> dict[str, Any]:
        endpoint_id = self._require_endpoint(directive)
        if not self._is_thermostat(endpoint_id):
            raise UnsupportedDirective(
                error_type="INVALID_DIRECTIVE",
                message=f"Endpoint {endpoint_id} is not a thermostat",
            )

        op = directive.header.name.lower()
        if op == "settargettemperature":
            setpoint = SetTargetTemperaturePayload.model_validate(directive.payload).targetSetpoint
            await self.daemon.set_target_temperature(to_celsius(setpoint), timeout=self._timeout)
        elif op == "adjusttargettemperature":
            delta = AdjustTargetTemperaturePayload.model_validate(directive.payload).targetSetpointDelta
            await self.daemon.adjust_target_temperature(delta_to_celsius(delta), timeout=self._timeout)
        else:
            raise UnsupportedDirective(
                error_type="INVALID_DIRECTIVE",
                message=f"Unsupported directive: {directive.header.namespace}.{directive.header.name}",
            )

        # The daemon applies deltas itself, so report what it ended up with.
        state = await self.daemon.read_thermostat(timeout=self._timeout)
        response = AlexaResponse(
            correlation_token=directive.header.correlationToken,
            endpoint_id=endpoint_id,
            token=directive.token,
        )
        response.add_context_properties(thermostat_properties(state))
        return response.get()


def _first_error(err: ValidationError) -> str:
    errors = err.errors()
    if not errors:
        return str(err)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg', 'invalid')}" if loc else str(first.get("msg", "invalid"))
