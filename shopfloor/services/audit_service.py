from __future__ import annotations

from sqlalchemy.orm import Session

from shopfloor.models import AuditLog


def log_audit(
    db: Session,
    *,
    actor: str | None,
    action: str,
    entity_id: int | None = None,
    metadata: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            actor=actor,
            action=action,
            entity_id=entity_id,
            meta=metadata or {},
        )
    )
