# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Accounts — registration, login, profile and admin listing.
"""

import uuid
from typing import Any, Optional

from relief_service.core.errors import AuthenticationError, NotFoundError, ValidationError
from relief_service.core.logging import get_logger
from relief_service.core.security import hash_password, issue_token, verify_password
from relief_service.metrics import LOGINS_TOTAL, REGISTRATIONS_TOTAL
from relief_service.models.domain import LEGACY_ACCOUNT_KEYS, ROLE_COLLECTIONS, Account
from relief_service.repositories.account_repository import AccountRepository
from relief_service.schemas import (
    LOGIN_ROLES,
    PROFILE_FIELDS,
    REGISTERABLE_ROLES,
    check_phone_number,
    check_pin_code,
    normalise_email,
)

logger = get_logger(__name__)

_PROFILE_CHECKS = {
    "email": normalise_email,
    "phone_number": check_phone_number,
    "pin_code": check_pin_code,
}


class AccountService:
    def __init__(self, repo: AccountRepository) -> None:
        self._repo = repo

    def seed_admin(self, name: str, email: str, password: str) -> Optional[Account]:
        """Create the bootstrap admin if configured and absent."""
        if not email or not password:
            return None
        email = normalise_email(email)
        existing = self._repo.find_by_login("admin", email)
        if existing is not None:
            return existing
        admin = Account(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password=hash_password(password),
        )
        self._repo.add("admin", admin)
        logger.info("Seeded admin account email=%s", email)
        return admin

    # ── Registration / login ──

    def register(self, role: str, name: str, phone_number: str, address: str,
                 email: str, password: str, country: str, city: str,
                 pin_code: str) -> dict[str, Any]:
        """Register a user, agency or volunteer. Raises DuplicateAccountError."""
        if role not in REGISTERABLE_ROLES:
            raise ValidationError(
                f"Invalid role. Allowed roles are: {', '.join(REGISTERABLE_ROLES)}"
            )
        account = Account(
            id=str(uuid.uuid4()),
            name=name.strip(),
            email=normalise_email(email),
            password=hash_password(password.strip()),
            phone_number=phone_number.strip(),
            address=address.strip(),
            country=country.strip(),
            city=city.strip(),
            pin_code=pin_code.strip(),
        )
        self._repo.add(role, account)
        REGISTRATIONS_TOTAL.labels(role=role).inc()
        logger.info("Account registered role=%s id=%s", role, account.id)
        return account.public()

    def login(self, identifier: str, password: str, role: str) -> dict[str, Any]:
        """
        Authenticate by email or phone number within a role.
        Returns the public account record and a signed session token.
        """
        if role not in LOGIN_ROLES:
            raise ValidationError(
                f"Invalid role. Allowed roles are: {', '.join(LOGIN_ROLES)}"
            )
        account = self._repo.find_by_login(role, identifier)
        # same message for unknown account and bad password
        if account is None or not verify_password(password.strip(), account.password):
            LOGINS_TOTAL.labels(role=role, outcome="rejected").inc()
            logger.info("Login rejected role=%s", role)
            raise AuthenticationError("Invalid email or password")

        LOGINS_TOTAL.labels(role=role, outcome="success").inc()
        logger.info("Login success role=%s id=%s", role, account.id)
        return {
            "message": "Login successful",
            "user": account.public(),
            "token": issue_token(account.id, role),
        }

    # ── Profile ──

    def get_profile(self, role: str, account_id: str) -> dict[str, Any]:
        account = self._repo.get_by_id(role, account_id) if role in ROLE_COLLECTIONS else None
        if account is None:
            raise NotFoundError("User not found")
        return account.public()

    def update_profile(self, role: str, account_id: str,
                       updates: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update restricted to PROFILE_FIELDS."""
        if role not in ROLE_COLLECTIONS:
            raise NotFoundError("User not found")
        updates = {LEGACY_ACCOUNT_KEYS.get(k, k): v for k, v in updates.items()}
        invalid = [k for k in updates if k not in PROFILE_FIELDS]
        if invalid:
            raise ValidationError(
                f"Invalid fields: {', '.join(invalid)}. "
                f"Only {', '.join(PROFILE_FIELDS)} are allowed."
            )
        changes: dict[str, Any] = {}
        for key, value in updates.items():
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Field '{key}' must be a non-empty string")
            check = _PROFILE_CHECKS.get(key)
            try:
                changes[key] = check(value) if check else value.strip()
            except ValueError as exc:
                raise ValidationError(str(exc)) from None

        account = self._repo.update(role, account_id, changes)
        logger.info("Profile updated role=%s id=%s fields=%s", role, account_id, sorted(changes))
        return account.public()

    # ── Admin ──

    def list_accounts(self) -> dict[str, list[dict[str, Any]]]:
        return {
            collection: [a.public() for a in self._repo.get_all(role)]
            for role, collection in ROLE_COLLECTIONS.items()
        }
