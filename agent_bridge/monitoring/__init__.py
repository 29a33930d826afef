"""Monitoring package for Agent Bridge."""

from agent_bridge.monitoring.prometheus import (
    PrometheusMiddleware,
    get_metrics,
    record_agent_call,
    record_agent_error,
    record_agent_chain,
    record_completion_call,
    record_verification,
    record_code_issued,
)

__all__ = [
    "PrometheusMiddleware",
    "get_metrics",
    "record_agent_call",
    "record_agent_error",
    "record_agent_chain",
    "record_completion_call",
    "record_verification",
    "record_code_issued",
]
