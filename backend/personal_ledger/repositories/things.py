from datetime import datetime
from typing import Any

from ..models.thing import Thing
from .base import SqlAlchemyRepository


class ThingRepository(SqlAlchemyRepository[Thing]):
    model = Thing
    label = "thing"
    unique_field = "email"

    def _creation_defaults(self, now: datetime) -> dict[str, Any]:
        # Subscription starts when the thing is first recorded
        return {**super()._creation_defaults(now), "subscribed_at": now}

    def get_by_email(self, email: str) -> Thing:
        return self._get_by_unique(email)
