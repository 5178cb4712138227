# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Emergency registry — reporting, volunteer acceptance and decline.

Status is derived from the volunteer list on every read and write:
    pending  ─► accepted   first volunteer accepts
    accepted ─► pending    last volunteer declines
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from relief_service.core.errors import (
    AlreadyAcceptedError,
    NotAcceptedError,
    NotFoundError,
    ValidationError,
)
from relief_service.core.logging import get_logger
from relief_service.metrics import (
    ACCEPTANCES_TOTAL,
    DECLINES_TOTAL,
    EMERGENCIES_CREATED,
    EMERGENCIES_TOTAL,
)
from relief_service.models.domain import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    VALID_STATUSES,
    Emergency,
)
from relief_service.repositories.emergency_repository import EmergencyRepository

logger = get_logger(__name__)


def _require(**fields: Any) -> list[str]:
    """Trim every field; raise ValidationError naming the empty ones."""
    cleaned, missing = [], []
    for name, value in fields.items():
        value = value.strip() if isinstance(value, str) else ""
        if not value:
            missing.append(name)
        cleaned.append(value)
    if missing:
        raise ValidationError(f"Required field(s) missing or empty: {', '.join(missing)}")
    return cleaned


class EmergencyService:
    def __init__(self, repo: EmergencyRepository) -> None:
        self._repo = repo

    def seed_gauges(self) -> None:
        counts = dict.fromkeys(VALID_STATUSES, 0)
        for emergency in self._repo.get_all():
            counts[emergency.status] += 1
        for status, cnt in counts.items():
            EMERGENCIES_TOTAL.labels(status=status).set(cnt)
        logger.info("Prometheus gauges loaded from document store")

    # ── Commands ──

    def create_emergency(self, title: str, description: str, reporter: str) -> Emergency:
        title, description, reporter = _require(
            title=title, description=description, reporter=reporter,
        )
        emergency = Emergency(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            reporter=reporter,
            volunteers=[],
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._repo.add(emergency)

        EMERGENCIES_CREATED.inc()
        EMERGENCIES_TOTAL.labels(status=STATUS_PENDING).inc()
        logger.info("Emergency created id=%s reporter=%s", emergency.id, reporter)
        return emergency

    def accept_emergency(self, emergency_id: str, volunteer_name: str) -> Emergency:
        """Add a volunteer. At most once per volunteer name."""
        emergency_id, volunteer_name = _require(
            emergency_id=emergency_id, volunteer_name=volunteer_name,
        )
        previous: dict[str, str] = {}

        def _accept(emergency: Emergency) -> None:
            if volunteer_name in emergency.volunteers:
                raise AlreadyAcceptedError("You have already accepted this emergency")
            previous["status"] = emergency.status
            emergency.volunteers.append(volunteer_name)

        updated = self._repo.modify(emergency_id, _accept)

        ACCEPTANCES_TOTAL.inc()
        self._track_transition(previous["status"], updated.status)
        logger.info("Emergency accepted id=%s volunteer=%s volunteers=%d",
                    emergency_id, volunteer_name, len(updated.volunteers))
        return updated

    def decline_emergency(self, emergency_id: str, volunteer_name: str) -> Emergency:
        """Withdraw a volunteer who previously accepted."""
        emergency_id, volunteer_name = _require(
            emergency_id=emergency_id, volunteer_name=volunteer_name,
        )
        previous: dict[str, str] = {}

        def _decline(emergency: Emergency) -> None:
            if volunteer_name not in emergency.volunteers:
                raise NotAcceptedError("You have not accepted this emergency")
            previous["status"] = emergency.status
            emergency.volunteers.remove(volunteer_name)

        updated = self._repo.modify(emergency_id, _decline)

        DECLINES_TOTAL.inc()
        self._track_transition(previous["status"], updated.status)
        logger.info("Emergency declined id=%s volunteer=%s status=%s",
                    emergency_id, volunteer_name, updated.status)
        return updated

    # ── Queries ──

    def list_emergencies(self) -> list[Emergency]:
        return self._repo.get_all()

    def get_emergency(self, emergency_id: str) -> Emergency:
        emergency = self._repo.get_by_id(emergency_id)
        if emergency is None:
            raise NotFoundError(f"Emergency {emergency_id} not found")
        return emergency

    def get_summary_stats(self) -> dict[str, int]:
        emergencies = self._repo.get_all()
        engaged = {v for e in emergencies for v in e.volunteers}
        return {
            "total": len(emergencies),
            STATUS_PENDING: sum(1 for e in emergencies if e.status == STATUS_PENDING),
            STATUS_ACCEPTED: sum(1 for e in emergencies if e.status == STATUS_ACCEPTED),
            "volunteers_engaged": len(engaged),
        }

    # ── Internal ──

    @staticmethod
    def _track_transition(old_status: str, new_status: str) -> None:
        if old_status != new_status:
            EMERGENCIES_TOTAL.labels(status=old_status).dec()
            EMERGENCIES_TOTAL.labels(status=new_status).inc()
            logger.info("Emergency status %s -> %s", old_status, new_status)
