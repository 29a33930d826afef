"""Main entry point for the Agent Bridge application."""

import os
from typing import Tuple
from urllib.parse import urlparse

import uvicorn
from loguru import logger

from agent_bridge.settings import settings


def parse_url(url_str: str) -> Tuple[str, str, int]:
    """
    Parse a URL string to extract protocol, host, and port.

    Supports:
    - Full URLs: http://localhost:3001, https://example.com:443
    - URLs without port: http://example.com (defaults to 80/443)
    - Just host:port: localhost:3001
    - Just host: localhost

    Returns:
        tuple: (protocol, host, port)
    """
    default_port = settings.port
    if not url_str:
        return ("http", "0.0.0.0", default_port)

    if "://" in url_str:
        parsed = urlparse(url_str)
        protocol = parsed.scheme or "http"
        host = parsed.hostname or "0.0.0.0"
        if parsed.port:
            port = parsed.port
        elif protocol == "https":
            port = 443
        elif protocol == "http":
            port = 80
        else:
            port = default_port
    elif ":" in url_str:
        host_part, _, port_part = url_str.partition(":")
        host = host_part or "0.0.0.0"
        try:
            port = int(port_part)
        except ValueError:
            port = default_port
        protocol = "http"
    else:
        host = url_str
        port = default_port
        protocol = "http"

    return (protocol, host, port)


def get_server_config() -> Tuple[str, int, str]:
    """
    Get server configuration from environment variables or settings.

    Checks in order:
    1. AGENT_BRIDGE_URL environment variable (full URL)
    2. AGENT_BRIDGE_HOST + PORT environment variables
    3. Settings defaults

    Returns:
        tuple: (host, port, protocol)
    """
    bridge_url = os.getenv("AGENT_BRIDGE_URL")
    if bridge_url:
        protocol, host, port = parse_url(bridge_url)
        return (host, port, protocol)

    host = os.getenv("AGENT_BRIDGE_HOST", settings.host)
    port = int(os.getenv("PORT") or os.getenv("AGENT_BRIDGE_PORT") or settings.port)
    return (host, port, "http")


def main() -> None:
    """Start the application with uvicorn."""
    host, port, protocol = get_server_config()

    if (protocol == "http" and port == 80) or (protocol == "https" and port == 443):
        base_url = f"{protocol}://{host}"
    else:
        base_url = f"{protocol}://{host}:{port}"

    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"📍 Server will be available at: {base_url}")
    logger.info(f"🔍 Health Check: {base_url}{settings.api_prefix}/health")

    uvicorn.run(
        "agent_bridge.application:get_app",
        factory=True,
        host=host,
        port=port,
        log_level=settings.log_level.value.lower(),
        reload=settings.reload,
        workers=None if settings.reload else settings.workers_count,
    )


if __name__ == "__main__":
    main()
