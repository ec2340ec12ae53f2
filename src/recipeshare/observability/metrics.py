"""Prometheus metrics instrumentation for the HTTP boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_fastapi_instrumentator import Instrumentator, metrics

from recipeshare.core.config import get_settings
from recipeshare.observability.logging import get_logger


if TYPE_CHECKING:
    from fastapi import FastAPI

    from recipeshare.core.config import Settings

logger = get_logger(__name__)

METRIC_NAMESPACE = "recipeshare"


def setup_metrics(app: FastAPI, settings: Settings | None = None) -> Instrumentator:
    """Instrument ``app`` and expose ``{v1_prefix}/metrics``.

    Collects request count, latency histogram and in-progress gauge. When
    metrics are disabled the returned instrumentator is left unattached.
    """
    settings = settings or get_settings()

    if not settings.observability.metrics.enabled:
        logger.info("Metrics collection disabled")
        return Instrumentator()

    prefix = settings.api.v1_prefix

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            f"{prefix}/health",
            f"{prefix}/metrics",
            "/docs",
            "/openapi.json",
        ],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )

    instrumentator.add(
        metrics.default(
            metric_namespace=METRIC_NAMESPACE,
            metric_subsystem="http",
            should_only_respect_2xx_for_highr=False,
        )
    )

    instrumentator.instrument(app)

    metrics_endpoint = f"{prefix}/metrics"
    instrumentator.expose(
        app,
        endpoint=metrics_endpoint,
        include_in_schema=False,
    )

    logger.info("Prometheus metrics configured", endpoint=metrics_endpoint)

    return instrumentator


__all__ = ["setup_metrics"]
