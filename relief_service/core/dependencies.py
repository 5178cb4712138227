# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire the document store, repositories and services.
"""

from typing import Any

from fastapi import Depends, HTTPException, Request

from relief_service.core.config import settings
from relief_service.core.errors import AuthenticationError
from relief_service.core.security import TOKEN_COOKIE, decode_token
from relief_service.repositories.account_repository import AccountRepository
from relief_service.repositories.document_store import (
    DocumentStore,
    JsonDocumentStore,
    SqlDocumentStore,
)
from relief_service.repositories.emergency_repository import EmergencyRepository
from relief_service.services.account_service import AccountService
from relief_service.services.chat_client import ChatClient
from relief_service.services.emergency_service import EmergencyService
from relief_service.services.prediction_client import PredictionClient


def build_store() -> DocumentStore:
    if settings.DATABASE_URL:
        from relief_service.core.database import build_engine
        return SqlDocumentStore(build_engine(settings.DATABASE_URL), settings.STORE_MAX_RETRIES)
    return JsonDocumentStore(settings.DATA_FILE)


# ── Singleton instances ──
_store = build_store()
_emergency_repo = EmergencyRepository(_store)
_account_repo = AccountRepository(_store)
_emergency_service = EmergencyService(_emergency_repo)
_account_service = AccountService(_account_repo)
_prediction_client = PredictionClient()
_chat_client = ChatClient()


# ── FastAPI dependency functions ──
def get_document_store() -> DocumentStore:
    return _store


def get_emergency_service() -> EmergencyService:
    return _emergency_service


def get_account_service() -> AccountService:
    return _account_service


def get_prediction_client() -> PredictionClient:
    return _prediction_client


def get_chat_client() -> ChatClient:
    return _chat_client


# ── Session ──
def get_current_principal(request: Request) -> dict[str, Any]:
    """Claims of the caller's token, read from the cookie or a Bearer header."""
    token = request.cookies.get(TOKEN_COOKIE)
    if not token:
        auth = request.headers.get("Authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized: No token provided")
    try:
        return decode_token(token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc))


def require_admin(principal: dict[str, Any] = Depends(get_current_principal)) -> dict[str, Any]:
    if principal.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Forbidden: admin role required")
    return principal
