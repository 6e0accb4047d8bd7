"""
app/repositories/competitor_repository.py

Read access to the competitor registry plus the last-crawled stamp.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from db.models.competitor import Competitor


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value.strip())
    except (AttributeError, ValueError):
        return None


class CompetitorRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, competitor_id: uuid.UUID) -> Competitor | None:
        return self._session.get(Competitor, competitor_id)

    def get_by_id_or_name(self, identifier: str) -> Competitor | None:
        """
        Look up by id first, then by case-insensitive name.
        """

        competitor_id = _parse_uuid(identifier)
        if competitor_id is not None:
            competitor = self.get(competitor_id)
            if competitor is not None:
                return competitor

        stmt = select(Competitor).where(func.lower(Competitor.name) == identifier.strip().lower())
        return self._session.scalars(stmt).first()

    def list_active(self) -> list[Competitor]:
        stmt = select(Competitor).where(Competitor.is_active.is_(True)).order_by(Competitor.name)
        return list(self._session.scalars(stmt).all())

    def touch_last_crawled(self, competitor_id: uuid.UUID, crawled_at: datetime) -> None:
        self._session.execute(
            update(Competitor)
            .where(Competitor.id == competitor_id)
            .values(last_crawled_at=crawled_at)
        )
