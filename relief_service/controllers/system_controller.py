# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from relief_service.core.config import settings
from relief_service.core.dependencies import get_document_store
from relief_service.core.errors import StorageError
from relief_service.repositories.document_store import DocumentStore

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready")
def readiness_check(store: DocumentStore = Depends(get_document_store)):
    """Readiness probe — the document store must be readable."""
    try:
        store.verify_connection()
    except StorageError:
        raise HTTPException(status_code=503, detail="Document store unavailable")
    return {"status": "ready", "service": settings.SERVICE_NAME, "store": "connected"}


@router.get("/metrics")
def prometheus_metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
