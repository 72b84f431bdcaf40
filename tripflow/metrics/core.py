"""Metrics façade for provider, LLM and workflow step tracking."""

import logging
from typing import Literal

logger = logging.getLogger(__name__)

StepStatus = Literal["completed", "replayed", "failed"]


def record_provider_call(
    provider: str,
    latency_ms: int,
    ok: bool,
    item_count: int = 0,
    error_kind: str | None = None,
) -> None:
    """Record metrics for one external provider (skill) call.

    This is a simple stub implementation that logs metrics.
    In production, this would emit to Prometheus/OpenTelemetry.

    Args:
        provider: Provider label (e.g. "airbnb", "geocoder").
        latency_ms: Latency in milliseconds.
        ok: Whether the call succeeded.
        item_count: Number of items normalized from the response.
        error_kind: Short error label if the call failed.
    """
    logger.info(
        "provider_call_metric",
        extra={
            "provider": provider,
            "latency_ms": latency_ms,
            "ok": ok,
            "item_count": item_count,
            "error_kind": error_kind,
        },
    )


def record_llm_call(
    purpose: str,
    latency_ms: int,
    ok: bool,
    tokens_in: int | None = None,
    tokens_out: int | None = None,
) -> None:
    """Record metrics for one chat completion call."""
    logger.info(
        "llm_call_metric",
        extra={
            "purpose": purpose,
            "latency_ms": latency_ms,
            "ok": ok,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
        },
    )


def record_step(
    step: str,
    status: StepStatus,
    latency_ms: int,
    attempt: int,
) -> None:
    """Record metrics for one durable workflow step execution or replay."""
    logger.info(
        "workflow_step_metric",
        extra={
            "step": step,
            "status": status,
            "latency_ms": latency_ms,
            "attempt": attempt,
        },
    )
