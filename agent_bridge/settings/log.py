"""Logging configuration."""

import json
import logging
import sys
from typing import Any, Dict

from loguru import logger

from agent_bridge.settings import settings


def correlation_id_filter(record: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation ID and current agent to log record.

    Checks extra fields first (set by middleware), then falls back to context.

    Args:
        record: The log record dictionary

    Returns:
        Modified log record with correlation_id field
    """
    from agent_bridge.settings.context import get_agent_context, get_correlation_id

    correlation_id = record["extra"].get("correlation_id")
    if not correlation_id or correlation_id == "N/A":
        correlation_id = get_correlation_id()
    record["extra"]["correlation_id"] = correlation_id or "N/A"

    agent_ctx = get_agent_context()
    if agent_ctx and agent_ctx.agent_calls:
        current_agent = agent_ctx.agent_calls[-1]
        record["extra"]["agent_type"] = current_agent.agent_type
        record["extra"]["agent_name"] = current_agent.agent_name
    else:
        record["extra"]["agent_type"] = "N/A"
        record["extra"]["agent_name"] = "N/A"

    return record


def json_formatter(record: Dict[str, Any]) -> str:
    """Format log record as JSON for production.

    Args:
        record: The log record dictionary

    Returns:
        JSON formatted log string
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "correlation_id": record["extra"].get("correlation_id", "N/A"),
        "agent_type": record["extra"].get("agent_type", "N/A"),
        "agent_name": record["extra"].get("agent_name", "N/A"),
        "module": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    # loguru treats the returned string as a format template
    return json.dumps(log_entry).replace("{", "{{").replace("}", "}}") + "\n"


def configure_logging():
    """Configure application logging with correlation ID support."""
    logger.remove()

    if settings.environment.value in ["development", "staging", "testing"]:
        logger.add(
            sys.stdout,
            level=settings.log_level.value,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<yellow>[{extra[correlation_id]}]</yellow> | "
                "<magenta>[{extra[agent_type]}:{extra[agent_name]}]</magenta> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
            colorize=True,
            filter=correlation_id_filter,
        )

    if settings.environment.value == "production":
        logger.add(
            sys.stdout,
            level=settings.log_level.value,
            format=json_formatter,
            serialize=False,
            filter=correlation_id_filter,
        )

        logger.add(
            "logs/agent-bridge-error.log",
            level="ERROR",
            format=json_formatter,
            serialize=False,
            rotation="1 day",
            retention="30 days",
            compression="zip",
            filter=correlation_id_filter,
        )

    logger.disable("httpx")
    logger.disable("httpcore")

    # Upstream SDKs log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    return logger
