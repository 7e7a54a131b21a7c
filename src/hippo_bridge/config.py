from __future__ import annotations

from dataclasses import dataclass

import os


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AppConfig:
    port: int
    daemon_host: str
    daemon_port: int
    daemon_timeout_seconds: float
    auth_tokens: list[str]
    thermostat_enabled: bool
    thermostat_endpoint_id: str
    log_level: str

    @property
    def daemon_base_url(self) -> str:
        return f"http://{self.daemon_host}:{self.daemon_port}"

    @staticmethod
    def from_env() -> "AppConfig":
        return AppConfig(
            port=int(os.getenv("PORT", "8000")),
            daemon_host=os.getenv("HIPPO_DAEMON_HOST", "127.0.0.1"),
            daemon_port=int(os.getenv("HIPPO_DAEMON_PORT", "8080")),
            daemon_timeout_seconds=float(os.getenv("HIPPO_DAEMON_TIMEOUT_SECONDS", "5.0")),
            auth_tokens=_split_csv(os.getenv("GATEWAY_AUTH_TOKENS")),
            thermostat_enabled=_flag(os.getenv("THERMOSTAT_ENABLED")),
            thermostat_endpoint_id=os.getenv("THERMOSTAT_ENDPOINT_ID", "thermostat"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
