from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hippo_bridge.config import AppConfig
from hippo_bridge.daemon_client import DaemonClient, DaemonClientError, GatewayUnreachable
from hippo_bridge.handlers import DirectiveDispatcher
from hippo_bridge.schemas import DirectiveRequest, HealthResponse, ReadinessResponse, TransportErrorResponse
from hippo_bridge.security import require_token


logger = logging.getLogger("hippo_bridge")

DIRECTIVE_PATH = "/alexa/directives"

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
}


@dataclass
class AppState:
    config: AppConfig
    daemon: DaemonClient
    dispatcher: DirectiveDispatcher


def _transport_error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse({"error": {"code": code, "message": message}}, status_code=status_code)


def create_app(config: AppConfig, *, daemon: DaemonClient | None = None) -> FastAPI:
    if daemon is None:
        daemon = DaemonClient(base_url=config.daemon_base_url, timeout_seconds=config.daemon_timeout_seconds)
    state = AppState(
        config=config,
        daemon=daemon,
        dispatcher=DirectiveDispatcher(daemon=daemon, config=config),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("forwarding directives to hippoledd at %s", state.daemon.base_url)
        try:
            yield
        finally:
            await state.daemon.close()

    app = FastAPI(
        title="Hippo Bridge",
        version="0.1.0",
        description=(
            "# Hippo Bridge API\n\n"
            "Alexa Smart Home (payload version 3) adapter for the hippoledd lamp daemon.\n\n"
            f"- `POST {DIRECTIVE_PATH}` accepts `{{\"header\": {{\"token\": \"...\"}}, \"payload\": {{\"directive\": {{...}}}}}}` "
            "and answers with an Alexa event (`Response`, `StateReport`, `Discover.Response` or `ErrorResponse`).\n"
            "- `GET /healthz` liveness\n"
            "- `GET /readyz` readiness (hippoledd answers the lamp listing)\n\n"
            "Transport errors (bad content type, bad JSON, missing token) are rejected with 4xx and "
            "`{ \"error\": {\"code\": \"...\", \"message\": \"...\"} }` before any call to hippoledd.\n"
        ),
        lifespan=lifespan,
    )
    app.state.state = state

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict) and "code" in exc.detail:
            return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)
        code = _STATUS_CODES.get(exc.status_code, "http_error")
        return JSONResponse(
            {"error": {"code": code, "message": str(exc.detail)}},
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.middleware("http")
    async def access_log(request: Request, call_next: Callable[[Request], Response]):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    @app.get(
        "/healthz",
        summary="Liveness check",
        response_model=HealthResponse,
        tags=["meta"],
    )
    async def healthz() -> HealthResponse:
        return {"ok": True}

    @app.get(
        "/readyz",
        summary="Readiness check",
        description="Returns `ready=true` when hippoledd answers `GET /webapi/lamps`.",
        response_model=ReadinessResponse,
        tags=["meta"],
    )
    async def readyz() -> ReadinessResponse:
        try:
            await state.daemon.list_devices()
        except GatewayUnreachable as exc:
            return JSONResponse(
                {"ready": False, "reason": "daemon_unreachable", "details": str(exc)},
                status_code=503,
            )
        except DaemonClientError as exc:
            return JSONResponse(
                {"ready": False, "reason": "daemon_error", "details": str(exc)},
                status_code=503,
            )
        return {"ready": True}

    @app.post(
        DIRECTIVE_PATH,
        summary="Alexa Smart Home directive endpoint",
        responses={
            200: {"description": "Alexa event (success or `ErrorResponse`)."},
            400: {"description": "Missing JSON content type, invalid JSON or invalid envelope.", "model": TransportErrorResponse},
            401: {"description": "Missing or rejected `header.token`.", "model": TransportErrorResponse},
            405: {"description": "Only POST is accepted.", "model": TransportErrorResponse},
        },
        tags=["alexa"],
    )
    async def directives(request: Request):
        content_type = request.headers.get("content-type", "")
        if content_type.split(";")[0].strip().lower() != "application/json":
            return _transport_error(
                status.HTTP_400_BAD_REQUEST, "invalid_content_type", "Content-Type must be application/json"
            )

        raw = await request.body()
        try:
            parsed = json.loads(raw)
        except ValueError:
            return _transport_error(status.HTTP_400_BAD_REQUEST, "invalid_json", "Request body must be valid JSON")

        try:
            body = DirectiveRequest.model_validate(parsed)
        except ValidationError as exc:
            return _transport_error(
                status.HTTP_400_BAD_REQUEST,
                "invalid_request",
                f"Request body must be {{header: {{token}}, payload: {{...}}}} ({exc.error_count()} error(s))",
            )

        require_token(body, state.config)
        response = await state.dispatcher.dispatch(body.payload)
        return JSONResponse(response)

    return app
