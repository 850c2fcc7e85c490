"""
app/repositories/activity_repository.py

Persistence helpers for the inventory activity trail.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.activity import Activity


class ActivityRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def record(
        self,
        *,
        action: str,
        item_type: str,
        item_id: int,
        notes: str | None = None,
    ) -> Activity:
        activity = Activity(action=action, item_type=item_type, item_id=item_id, notes=notes)
        self._session.add(activity)
        return activity

    def list_for_item(self, *, item_type: str, item_id: int) -> list[Activity]:
        stmt = (
            select(Activity)
            .where(Activity.item_type == item_type, Activity.item_id == item_id)
            .order_by(Activity.timestamp.desc(), Activity.id.desc())
        )
        return list(self._session.execute(stmt).scalars().all())
