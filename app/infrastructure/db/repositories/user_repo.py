from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.infrastructure.db.models_sqlalchemy import UserProfileRow


class UserProfileRepository:
    def get_by_email(self, session: Session, email: str) -> UserProfileRow | None:
        stmt = select(UserProfileRow).where(func.lower(UserProfileRow.email) == email.strip().lower())
        return session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, session: Session, user_id: str) -> UserProfileRow | None:
        stmt = select(UserProfileRow).where(UserProfileRow.id == user_id)
        return session.execute(stmt).scalar_one_or_none()

    def list_users(
        self,
        session: Session,
        query: str | None = None,
        role: str | None = None,
        limit: int | None = None,
    ) -> list[UserProfileRow]:
        stmt = select(UserProfileRow)
        if query:
            pattern = f"%{query}%"
            stmt = stmt.where(UserProfileRow.email.ilike(pattern) | UserProfileRow.name.ilike(pattern))
        if role:
            stmt = stmt.where(UserProfileRow.role == role)
        stmt = stmt.order_by(UserProfileRow.email.asc())
        if limit:
            stmt = stmt.limit(limit)
        return list(session.execute(stmt).scalars())

    def create(
        self,
        session: Session,
        *,
        email: str,
        password_hash: str,
        role: str,
        name: str | None = None,
        designation: str | None = None,
        custom_settings: dict[str, Any] | None = None,
        updated_by: str | None = None,
        user_id: str | None = None,
    ) -> UserProfileRow:
        row = UserProfileRow(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
            name=name,
            designation=designation,
            custom_settings=custom_settings or {},
            active=True,
            updated_by=updated_by,
        )
        if user_id:
            row.id = user_id
        session.add(row)
        session.flush()  # populate id
        return row

    def update_fields(
        self,
        session: Session,
        row: UserProfileRow,
        *,
        updated_by: str | None,
        **values: Any,
    ) -> UserProfileRow:
        for key, value in values.items():
            setattr(row, key, value)
        row.updated_by = updated_by
        session.flush()
        return row

    def count_by_role(self, session: Session, *, active_only: bool = False) -> dict[str, int]:
        stmt = select(UserProfileRow.role, func.count(UserProfileRow.id)).group_by(UserProfileRow.role)
        if active_only:
            stmt = stmt.where(UserProfileRow.active.is_(True))
        return {role: count for role, count in session.execute(stmt).all()}
