"""
Deal Repository - Data Access Layer for the Deal model.

Every public method borrows one pooled connection through a short-lived
session, runs a single statement, and gives the connection back on every
exit path (including cancellation and timeouts).
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import delete, func, insert, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dealdesk.core.errors import DealNotFound, store_errors
from dealdesk.models.deal import Deal
from dealdesk.query.predicate import Predicate, to_sql
from dealdesk.query.sorting import SortSpec, order_by
from dealdesk.schemas.deal import DealDraft, Stats
from dealdesk.services.aggregation import stats_from_row, stats_query


def _draft_values(draft: DealDraft) -> dict:
    """Every mutable column, taken verbatim from the draft."""
    return {
        "name": draft.name,
        "contact_name": draft.contact_name,
        "company": draft.company,
        "stage": draft.stage,
        "value": draft.value,
        "close_date": draft.close_date,
        "description": draft.description,
    }


class DealRepository:
    """Repository for Deal reads, writes and aggregates."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        statement_timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.statement_timeout = statement_timeout

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with store_errors(operation):
            async with asyncio.timeout(self.statement_timeout):
                async with self.session_factory() as session:
                    yield session

    # ──────────────────────────────────────────────
    # Single-record operations
    # ──────────────────────────────────────────────

    async def insert(self, draft: DealDraft) -> Deal:
        """Persist a new deal and return it with its store-assigned fields."""
        async with self._session("insert") as session:
            result = await session.execute(
                insert(Deal).values(**_draft_values(draft)).returning(Deal)
            )
            deal = result.scalar_one()
            await session.commit()
            return deal

    async def get(self, deal_id: int) -> Deal:
        """Get deal by ID."""
        async with self._session("get") as session:
            result = await session.execute(select(Deal).where(Deal.id == deal_id))
            deal = result.scalar_one_or_none()
        if deal is None:
            raise DealNotFound(deal_id)
        return deal

    async def update(self, deal_id: int, draft: DealDraft) -> Deal:
        """
        Replace every mutable field of a deal and return the post-image.

        ``id`` and ``created_at`` are never written. A missing row is
        reported as DealNotFound rather than a silent no-op.
        """
        async with self._session("update") as session:
            result = await session.execute(
                update(Deal)
                .where(Deal.id == deal_id)
                .values(**_draft_values(draft))
                .returning(Deal)
                .execution_options(synchronize_session=False)
            )
            deal = result.scalar_one_or_none()
            if deal is None:
                await session.rollback()
                raise DealNotFound(deal_id)
            await session.commit()
            return deal

    async def delete(self, deal_id: int) -> None:
        """Delete a deal."""
        async with self._session("delete") as session:
            result = await session.execute(
                delete(Deal).where(Deal.id == deal_id).returning(Deal.id)
            )
            if result.scalar_one_or_none() is None:
                await session.rollback()
                raise DealNotFound(deal_id)
            await session.commit()

    # ──────────────────────────────────────────────
    # Predicate reads
    # ──────────────────────────────────────────────

    async def page(self, predicate: Predicate, sort: SortSpec, offset: int, limit: int) -> list[Deal]:
        """At most ``limit`` deals matching ``predicate`` in ``sort`` order."""
        stmt = (
            select(Deal)
            .where(to_sql(predicate))
            .order_by(*order_by(sort))
            .offset(offset)
            .limit(limit)
        )
        async with self._session("page") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(self, predicate: Predicate) -> int:
        """Number of deals matching ``predicate``."""
        stmt = select(func.count(Deal.id)).where(to_sql(predicate))
        async with self._session("count") as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def aggregate(self, predicate: Predicate) -> Stats:
        """Stats over the deals matching ``predicate``."""
        async with self._session("aggregate") as session:
            result = await session.execute(stats_query(to_sql(predicate)))
            return stats_from_row(result.one())

    async def ping(self) -> None:
        """Borrow a connection and run a trivial statement."""
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))
