"""
In-memory deal store with the same contract as DealRepository.

Backs coordinator tests and local experiments without a database.
"""
import itertools
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from dealdesk.core.errors import DealNotFound
from dealdesk.models.deal import DealStage
from dealdesk.query.predicate import Predicate, evaluate
from dealdesk.query.sorting import SortSpec, sort_rows
from dealdesk.schemas.deal import DealDraft, Stats
from dealdesk.services.aggregation import compute_stats


@dataclass(frozen=True)
class StoredDeal:
    """Snapshot of one row; attribute names match the ORM model."""
    id: int
    name: str
    contact_name: str
    company: str
    stage: DealStage
    value: Decimal
    created_at: datetime
    close_date: Optional[date]
    description: Optional[str]


class InMemoryDealRepository:
    """Dict-backed repository. Ids are monotonic and never reused."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self._rows: dict[int, StoredDeal] = {}
        self._ids = itertools.count(1)

    async def insert(self, draft: DealDraft) -> StoredDeal:
        deal = StoredDeal(
            id=next(self._ids),
            created_at=self.clock().replace(tzinfo=None),
            **draft.model_dump(),
        )
        self._rows[deal.id] = deal
        return deal

    async def get(self, deal_id: int) -> StoredDeal:
        try:
            return self._rows[deal_id]
        except KeyError:
            raise DealNotFound(deal_id) from None

    async def update(self, deal_id: int, draft: DealDraft) -> StoredDeal:
        current = await self.get(deal_id)
        updated = replace(current, **draft.model_dump())
        self._rows[deal_id] = updated
        return updated

    async def delete(self, deal_id: int) -> None:
        if self._rows.pop(deal_id, None) is None:
            raise DealNotFound(deal_id)

    def _matching(self, predicate: Predicate) -> list[StoredDeal]:
        return [row for row in self._rows.values() if evaluate(predicate, row)]

    async def page(self, predicate: Predicate, sort: SortSpec, offset: int, limit: int) -> list[StoredDeal]:
        return sort_rows(self._matching(predicate), sort)[offset:offset + limit]

    async def count(self, predicate: Predicate) -> int:
        return len(self._matching(predicate))

    async def aggregate(self, predicate: Predicate) -> Stats:
        return compute_stats(self._matching(predicate))

    async def ping(self) -> None:
        return None
