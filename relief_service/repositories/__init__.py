# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package — re-exports the document store and collection repositories."""
from relief_service.repositories.account_repository import AccountRepository
from relief_service.repositories.document_store import (
    DocumentStore,
    JsonDocumentStore,
    SqlDocumentStore,
)
from relief_service.repositories.emergency_repository import EmergencyRepository

__all__ = [
    "AccountRepository",
    "DocumentStore",
    "EmergencyRepository",
    "JsonDocumentStore",
    "SqlDocumentStore",
]
