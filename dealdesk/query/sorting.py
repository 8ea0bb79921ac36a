"""
Sort whitelist for deal list queries.
"""
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.sql.elements import ColumnElement

from dealdesk.models.deal import Deal, DealStage

# Keys are emitted from this table, never from the request
SORTABLE = {
    "name": Deal.name,
    "contact_name": Deal.contact_name,
    "company": Deal.company,
    "stage": Deal.stage,
    "value": Deal.value,
    "created_at": Deal.created_at,
    "close_date": Deal.close_date,
}
DIRECTIONS = ("ASC", "DESC")

DEFAULT_SORT_KEY = "created_at"
DEFAULT_DIRECTION = "DESC"

_STAGE_RANK = {stage: rank for rank, stage in enumerate(DealStage)}


@dataclass(frozen=True)
class SortSpec:
    key: str = DEFAULT_SORT_KEY
    direction: str = DEFAULT_DIRECTION

    @property
    def descending(self) -> bool:
        return self.direction == "DESC"


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> SortSpec:
    """Fall back to the defaults for anything outside the whitelist."""
    key = DEFAULT_SORT_KEY
    for candidate in SORTABLE:
        if candidate == sort_by:
            key = candidate
            break

    direction = DEFAULT_DIRECTION
    wanted = (sort_order or "").strip().upper()
    for candidate in DIRECTIONS:
        if candidate == wanted:
            direction = candidate
            break

    return SortSpec(key, direction)


def order_by(spec: SortSpec) -> list[ColumnElement[Any]]:
    """ORDER BY clauses for ``spec`` with ``id ASC`` as the tiebreak."""
    column = SORTABLE[spec.key]
    clause = column.desc() if spec.descending else column.asc()
    if spec.key == "close_date":
        clause = clause.nulls_last()
    return [clause, Deal.id.asc()]


def sort_rows(rows: list[Any], spec: SortSpec) -> list[Any]:
    """Order in-memory rows the way ``order_by`` orders them in the store."""
    def primary(row: Any) -> Any:
        current = getattr(row, spec.key)
        if spec.key == "stage":
            return _STAGE_RANK[current]
        return current

    # Two stable passes: id ascending first, then the requested key
    ordered = sorted(rows, key=lambda row: row.id)
    present = [row for row in ordered if getattr(row, spec.key) is not None]
    missing = [row for row in ordered if getattr(row, spec.key) is None]
    present.sort(key=primary, reverse=spec.descending)
    return present + missing
