"""
rolegate.profiles.audit

Repository for admin audit events.

Responsibilities:
- Append audit events for administrative mutations.
- Query the audit trail newest-first for the admin console.
"""

from __future__ import annotations

from typing import Any

from google.cloud import firestore

from rolegate.profiles.models import AuditEvent


class AuditRepo:
    def __init__(self, db: Any, *, collection: str = "audit_events") -> None:
        self._collection = db.collection(collection)

    async def add(
        self,
        *,
        actor: str,
        target: str,
        event_type: str,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        # Append-only: there is no update/delete path for audit events.
        ev = AuditEvent(actor=actor, target=target, event_type=event_type, details=details or {})
        ref = self._collection.document()
        await ref.set(ev.to_document())
        return ev.model_copy(update={"id": ref.id})

    async def list_recent(self, *, limit: int = 100) -> list[AuditEvent]:
        query = self._collection.order_by("createdAt", direction=firestore.Query.DESCENDING).limit(
            limit
        )
        return [AuditEvent.model_validate({"id": s.id, **s.to_dict()}) async for s in query.stream()]
