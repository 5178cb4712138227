# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Emergency data access over the ``emergencies`` collection.
NO business rules here — lookups and serialized writes only.
"""

from typing import Any, Callable, Optional

from relief_service.core.errors import NotFoundError
from relief_service.models.domain import Emergency
from relief_service.repositories.document_store import DocumentStore


class EmergencyRepository:
    COLLECTION = "emergencies"

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # ── Read ──

    def get_all(self) -> list[Emergency]:
        return [Emergency.model_validate(r) for r in self._store.read_collection(self.COLLECTION)]

    def get_by_id(self, emergency_id: str) -> Optional[Emergency]:
        for emergency in self.get_all():
            if emergency.id == emergency_id:
                return emergency
        return None

    # ── Write ──

    def add(self, emergency: Emergency) -> Emergency:
        def _append(items: list[dict[str, Any]]) -> None:
            items.append(emergency.model_dump())

        self._store.update(self.COLLECTION, _append)
        return emergency

    def modify(self, emergency_id: str, mutate: Callable[[Emergency], None]) -> Emergency:
        """
        Load one emergency, let ``mutate`` change it, and write it back in
        the same serialized update. Raises NotFoundError for unknown ids;
        anything ``mutate`` raises aborts the write.
        """

        def _apply(items: list[dict[str, Any]]) -> Emergency:
            for idx, raw in enumerate(items):
                if str(raw.get("id")) != emergency_id:
                    continue
                emergency = Emergency.model_validate(raw)
                mutate(emergency)
                items[idx] = emergency.model_dump()
                return emergency
            raise NotFoundError(f"Emergency {emergency_id} not found")

        return self._store.update(self.COLLECTION, _apply)
