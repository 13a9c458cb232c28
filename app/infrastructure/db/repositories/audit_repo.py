from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.infrastructure.db.models_sqlalchemy import AuditLog


class AuditLogRepository:
    def add_event(
        self,
        session: Session,
        *,
        user_id: str | None,
        entity_type: str,
        entity_id: str,
        action: str,
        payload: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            payload_json=json.dumps(payload, ensure_ascii=False, default=str) if payload is not None else None,
        )
        session.add(entry)
        return entry

    def list_for_entity(
        self,
        session: Session,
        *,
        entity_type: str,
        entity_id: str,
        limit: int = 50,
    ) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.event_ts.desc(), AuditLog.id.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())

    def count_events(
        self,
        session: Session,
        *,
        entity_type: str,
        entity_id: str,
        action: str,
        since: datetime | None = None,
    ) -> int:
        stmt = select(func.count(AuditLog.id)).where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
            AuditLog.action == action,
        )
        if since is not None:
            stmt = stmt.where(AuditLog.event_ts >= since)
        return int(session.execute(stmt).scalar_one())
