# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Account data access over the four role collections
(users, admins, volunteers, agencies).
"""

from typing import Any, Optional

from relief_service.core.errors import DuplicateAccountError, NotFoundError
from relief_service.models.domain import LEGACY_ACCOUNT_KEYS, ROLE_COLLECTIONS, Account
from relief_service.repositories.document_store import DocumentStore


def _collection(role: str) -> str:
    try:
        return ROLE_COLLECTIONS[role]
    except KeyError:
        raise KeyError(f"Unknown role '{role}'") from None


class AccountRepository:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # ── Read ──

    def get_all(self, role: str) -> list[Account]:
        return [Account.model_validate(r) for r in self._store.read_collection(_collection(role))]

    def get_by_id(self, role: str, account_id: str) -> Optional[Account]:
        for account in self.get_all(role):
            if account.id == account_id:
                return account
        return None

    def find_by_login(self, role: str, identifier: str) -> Optional[Account]:
        """Match by email (case-insensitive) or by phone number."""
        needle = identifier.strip()
        for account in self.get_all(role):
            if account.email.lower() == needle.lower() or account.phone_number == needle:
                return account
        return None

    # ── Write ──

    def add(self, role: str, account: Account) -> Account:
        """Insert unless the email is already taken within the role."""

        def _insert(items: list[dict[str, Any]]) -> None:
            email = account.email.lower()
            if any(str(r.get("email", "")).lower() == email for r in items):
                raise DuplicateAccountError(
                    f"Email {email} is already registered for the role {role}"
                )
            items.append(account.model_dump(exclude_none=True))

        self._store.update(_collection(role), _insert)
        return account

    def update(self, role: str, account_id: str, changes: dict[str, Any]) -> Account:
        def _apply(items: list[dict[str, Any]]) -> Account:
            for idx, raw in enumerate(items):
                if str(raw.get("id")) != account_id:
                    continue
                if "email" in changes:
                    email = changes["email"].lower()
                    if any(
                        str(r.get("email", "")).lower() == email and str(r.get("id")) != account_id
                        for r in items
                    ):
                        raise DuplicateAccountError(
                            f"Email {email} is already registered for the role {role}"
                        )
                current = Account.model_validate(raw).model_dump(exclude_none=True)
                for legacy in LEGACY_ACCOUNT_KEYS:
                    current.pop(legacy, None)
                account = Account.model_validate({**current, **changes})
                items[idx] = account.model_dump(exclude_none=True)
                return account
            raise NotFoundError("User not found")

        return self._store.update(_collection(role), _apply)
