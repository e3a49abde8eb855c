"""Runtime launcher for the tailing sidecar webhook (HTTPS)."""

from __future__ import annotations

import os
from pathlib import Path

import uvicorn

from tailing_sidecar.common.config import Config, Option

_VALID_UVICORN_LOG_LEVELS = {"critical", "error", "warning", "info", "debug", "trace"}


def _parse_log_level(log_level: str) -> str:
    level = log_level.strip().lower()
    if level in _VALID_UVICORN_LOG_LEVELS:
        return level
    return "info"


def _parse_reload_flag(reload: str | None) -> bool:
    if reload is None:
        return False
    return reload.strip().lower() in {"1", "true", "yes", "on"}


def _parse_socket_port(port: str) -> int:
    try:
        return int(port.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid app.socket_port value '{port}': expected integer") from exc


def _extract_host(socket_address: str) -> str:
    host: str = socket_address
    if socket_address.startswith("http://"):
        host = socket_address.removeprefix("http://")
    if socket_address.startswith("https://"):
        host = socket_address.removeprefix("https://")
    return host.strip("/")


def _tls_files(config: Config) -> tuple[str | None, str | None]:
    """Return serving cert and key, or `(None, None)` to serve plain HTTP"""
    cert_file = config.get(Option.TLS_CERT_FILE)
    key_file = config.get(Option.TLS_KEY_FILE)
    if not cert_file or not key_file:
        return None, None
    for path in (cert_file, key_file):
        if not Path(path).is_file():
            raise ValueError(f"TLS file '{path}' not found")
    return cert_file, key_file


def run() -> None:
    config = Config()

    host = _extract_host(str(config.get(Option.SOCKET_ADDRESS, "0.0.0.0")))
    socket_port = _parse_socket_port(str(config.get(Option.SOCKET_PORT, "9443")))
    log_level = _parse_log_level(str(config.get(Option.LOG_LEVEL, "info")))
    reload_enabled = _parse_reload_flag(os.getenv("UVICORN_RELOAD"))
    cert_file, key_file = _tls_files(config)

    if not host:
        raise ValueError("Invalid app.socket_address value: empty host")
    if socket_port <= 0:
        raise ValueError("Invalid app.socket_port value: expected > 0")

    uvicorn.run(
        "tailing_sidecar.microservice:app",
        host=host,
        port=socket_port,
        ssl_certfile=cert_file,
        ssl_keyfile=key_file,
        log_level=log_level,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    run()
