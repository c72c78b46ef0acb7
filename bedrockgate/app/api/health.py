############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# health.py: Health check and Prometheus metrics endpoints
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Health check and metrics endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from bedrockgate.app.metrics import refresh_queue_gauges
from bedrockgate.app.services.pipeline import SignedDispatchPipeline, get_pipeline
from bedrockgate.app.settings import get_settings

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def liveness_probe() -> Dict[str, str]:
    """
    Liveness probe - checks if the application is running.

    Returns 200 if the application is alive.
    """
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/readyz")
async def readiness_probe(
    pipeline: SignedDispatchPipeline = Depends(get_pipeline),
):
    """
    Readiness probe - checks if the application is ready to serve traffic.

    Checks:
    - At least one AWS credential is configured
    """
    checks = {
        "credentials": len(pipeline.credentials) > 0,
    }
    all_ready = all(checks.values())

    return JSONResponse(
        status_code=200 if all_ready else 503,
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get("/metrics")
async def prometheus_metrics(
    pipeline: SignedDispatchPipeline = Depends(get_pipeline),
) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    if not get_settings().metrics_enabled:
        return Response(status_code=404)

    # Update dynamic metrics
    refresh_queue_gauges(pipeline.queue.get_stats())

    metrics = generate_latest()
    return Response(content=metrics, media_type=CONTENT_TYPE_LATEST)


@router.get("/status")
async def gateway_status(
    pipeline: SignedDispatchPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """
    Get gateway status summary.

    Returns the configured route, credential regions and per-model queue state.
    """
    settings = get_settings()

    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "route": {
            "prefix": settings.route_prefix,
            "input_dialect": pipeline.route.input_dialect,
            "output_dialect": pipeline.route.output_dialect,
            "service": pipeline.route.service,
        },
        "credentials": {
            "count": len(pipeline.credentials),
            "regions": pipeline.credentials.regions(),
        },
        "queue": pipeline.queue.get_stats(),
    }
