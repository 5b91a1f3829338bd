from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from core.metrics import generate_prometheus_text

router = APIRouter(tags=["metrics"])


@router.get("/metrics", summary="Metriche Prometheus")
def get_metrics() -> Response:
    return Response(content=generate_prometheus_text(), media_type=CONTENT_TYPE_LATEST)
