"""Prometheus metrics for the Huly MCP server.

Cardinality rule: issue and project identifiers are NOT labels (unbounded).
tool_name and status are labels (bounded).
"""

import logging
from typing import Optional

import prometheus_client

logger = logging.getLogger(__name__)

_metrics = {}


def _metric(name, metric_type, description, labelnames=()):
    """Get or create a Prometheus metric."""
    if name in _metrics:
        return _metrics[name]
    cls = getattr(prometheus_client, metric_type)
    m = cls(name, description, labelnames=labelnames)
    _metrics[name] = m
    return m


def tool_calls_total():
    return _metric(
        "huly_mcp_tool_calls_total",
        "Counter",
        "Total tool calls",
        labelnames=["tool_name", "status"],
    )


def tool_call_duration():
    return _metric(
        "huly_mcp_tool_call_duration_seconds",
        "Histogram",
        "Tool call duration in seconds",
        labelnames=["tool_name", "status"],
    )


def store_reconnects_total():
    return _metric(
        "huly_mcp_store_reconnects_total",
        "Counter",
        "Store operations retried after a connection-level failure",
    )


def record_tool_call(tool_name: str, status: str, duration: float):
    """Record a tool call outcome and its duration."""
    tool_calls_total().labels(tool_name=tool_name, status=status).inc()
    tool_call_duration().labels(tool_name=tool_name, status=status).observe(duration)


def record_reconnect():
    store_reconnects_total().inc()


def start_metrics_server(port: Optional[int]) -> bool:
    """Serve /metrics on ``port``. Returns False when no port is configured."""
    if not port:
        return False
    prometheus_client.start_http_server(port)
    logger.info("Prometheus metrics exposed on port %d", port)
    return True
