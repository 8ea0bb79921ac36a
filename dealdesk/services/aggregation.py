"""
Aggregation engine: count, per-stage counts, sum, mean and extrema of deal value.

All money arithmetic stays in ``Decimal`` (the column's NUMERIC(15, 2) on the
store side), so sums never pick up binary float drift.
"""
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import Select, case, func, select
from sqlalchemy.sql.elements import ColumnElement

from dealdesk.models.deal import Deal, DealStage
from dealdesk.schemas.deal import Stats, quantize_money

STAGE_FIELDS = {
    DealStage.NEW: "new_deals",
    DealStage.IN_PROGRESS: "in_progress_deals",
    DealStage.WON: "won_deals",
    DealStage.LOST: "lost_deals",
}


def stats_query(where: ColumnElement[bool]) -> Select:
    """One SELECT computing every Stats column over the rows matching ``where``."""
    stage_counts = [
        func.count(case((Deal.stage == stage, Deal.id))).label(label)
        for stage, label in STAGE_FIELDS.items()
    ]
    return (
        select(
            func.count(Deal.id).label("total_deals"),
            *stage_counts,
            func.sum(Deal.value).label("total_value"),
            func.min(Deal.value).label("min_value"),
            func.max(Deal.value).label("max_value"),
        )
        .select_from(Deal)
        .where(where)
    )


def _money(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return quantize_money(value)


def build_stats(
    total_deals: int,
    stage_counts: dict[str, int],
    total_value: Optional[Decimal],
    min_value: Optional[Decimal],
    max_value: Optional[Decimal],
) -> Stats:
    total = _money(total_value) if total_value is not None else Decimal("0.00")
    average = quantize_money(total / total_deals) if total_deals else None
    return Stats(
        total_deals=total_deals,
        **{label: stage_counts.get(label, 0) for label in STAGE_FIELDS.values()},
        total_value=total,
        avg_value=average,
        min_value=_money(min_value) if total_deals else None,
        max_value=_money(max_value) if total_deals else None,
    )


def stats_from_row(row: Any) -> Stats:
    """Turn the single row produced by ``stats_query`` into Stats."""
    mapping = row._mapping
    return build_stats(
        total_deals=int(mapping["total_deals"] or 0),
        stage_counts={label: int(mapping[label] or 0) for label in STAGE_FIELDS.values()},
        total_value=mapping["total_value"],
        min_value=mapping["min_value"],
        max_value=mapping["max_value"],
    )


def compute_stats(deals: Iterable[Any]) -> Stats:
    """Same aggregates computed over in-memory rows."""
    rows = list(deals)
    stage_counts = {label: 0 for label in STAGE_FIELDS.values()}
    for deal in rows:
        stage_counts[STAGE_FIELDS[deal.stage]] += 1
    values = [deal.value for deal in rows]
    return build_stats(
        total_deals=len(rows),
        stage_counts=stage_counts,
        total_value=sum(values, Decimal("0")) if rows else None,
        min_value=min(values) if rows else None,
        max_value=max(values) if rows else None,
    )
