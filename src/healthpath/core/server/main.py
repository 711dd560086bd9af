"""HealthPath server entry point: ``python -m healthpath.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from healthpath.core.config.settings import get_settings
from healthpath.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the HealthPath MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.hp_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.hp_allow_insecure_bind and not _is_loopback_host(settings.hp_host):
        raise RuntimeError(
            "Refusing to bind the HealthPath server to a non-loopback host without an "
            "auth layer. Set HP_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info("Starting HealthPath server on %s:%d", settings.hp_host, settings.hp_port)

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.hp_host,
        port=settings.hp_port,
    )


if __name__ == "__main__":
    run()
