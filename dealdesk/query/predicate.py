"""
Predicate builder for deal list queries.

Filter options are parsed into a ``FilterRequest`` and then into a small
predicate tree (``And``, ``Eq``, ``Ge``, ``Le``, ``Like``, ``TruePredicate``).
The tree holds user values as data only; ``to_sql`` materialises it as a
SQLAlchemy expression where every value is a bound parameter, and
``evaluate`` runs it against in-memory rows.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from dealdesk.core.errors import ValidationFailed
from dealdesk.models.deal import Deal, DealStage
from dealdesk.schemas.deal import ListQuery

# Attribute name -> mapped column. Nothing outside this table can be referenced.
COLUMNS = {
    "name": Deal.name,
    "contact_name": Deal.contact_name,
    "company": Deal.company,
    "stage": Deal.stage,
    "value": Deal.value,
    "created_at": Deal.created_at,
    "close_date": Deal.close_date,
}

SEARCH_FIELDS = ("name", "contact_name", "company")

LIKE_ESCAPE = "\\"


# ──────────────────────────────────────────────
# Predicate tree
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class TruePredicate:
    pass


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Ge:
    field: str
    value: Any


@dataclass(frozen=True)
class Le:
    field: str
    value: Any


@dataclass(frozen=True)
class Like:
    """Case-insensitive substring match against any of ``fields``."""
    fields: tuple[str, ...]
    text: str


@dataclass(frozen=True)
class And:
    terms: tuple["Predicate", ...] = field(default_factory=tuple)


Predicate = Union[TruePredicate, Eq, Ge, Le, Like, And]

ALWAYS = TruePredicate()


def parameters(predicate: Predicate) -> list[Any]:
    """Bound values of ``predicate`` in the order they are rendered."""
    if isinstance(predicate, TruePredicate):
        return []
    if isinstance(predicate, (Eq, Ge, Le)):
        return [predicate.value]
    if isinstance(predicate, Like):
        return [_like_pattern(predicate.text)] * len(predicate.fields)
    if isinstance(predicate, And):
        return [value for term in predicate.terms for value in parameters(term)]
    raise TypeError(f"Unknown predicate node: {predicate!r}")


# ──────────────────────────────────────────────
# Parsing
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class FilterRequest:
    """Validated filter options. ``None`` means "no constraint"."""
    search: Optional[str] = None
    stage: Optional[DealStage] = None
    min_value: Optional[Decimal] = None
    max_value: Optional[Decimal] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def _blank(raw: Optional[str]) -> bool:
    return raw is None or raw.strip() == ""


def parse_stage(raw: Optional[str]) -> Optional[DealStage]:
    if _blank(raw) or raw.strip().lower() == "all":
        return None
    wanted = raw.strip().lower()
    for stage in DealStage:
        if stage.value.lower() == wanted:
            return stage
    allowed = ", ".join(s.value for s in DealStage)
    raise ValidationFailed("stage", f"must be one of: all, {allowed}")


def parse_amount(raw: Optional[str], field_name: str) -> Optional[Decimal]:
    if _blank(raw):
        return None
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        raise ValidationFailed(field_name, "must be a number") from None
    if not amount.is_finite():
        raise ValidationFailed(field_name, "must be a finite number")
    if amount < 0:
        raise ValidationFailed(field_name, "must not be negative")
    return amount


def parse_bound(raw: Optional[str], field_name: str, *, end_of_day: bool) -> Optional[datetime]:
    """
    Parse a calendar date or an ISO-8601 timestamp.

    A bare date expands to the first (or last) instant of that day. Zone-aware
    timestamps are converted to the wall-clock time of the zone this process
    runs in, then compared with the zone-less ``created_at``. The service host
    and the store must therefore share a time zone (TZ) for such bounds to be
    exact; bare dates and naive timestamps are compared as given.
    """
    if _blank(raw):
        return None
    text = raw.strip()
    try:
        day = date.fromisoformat(text)
    except ValueError:
        day = None
    if day is not None:
        return datetime.combine(day, time.max if end_of_day else time.min)

    try:
        instant = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationFailed(field_name, "must be a date (YYYY-MM-DD) or ISO-8601 timestamp") from None
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant


def parse_filters(query: ListQuery) -> FilterRequest:
    """Validate the filter part of a list query. No store call is made."""
    search = None if _blank(query.search) else query.search.strip()
    return FilterRequest(
        search=search,
        stage=parse_stage(query.stage),
        min_value=parse_amount(query.min_value, "minValue"),
        max_value=parse_amount(query.max_value, "maxValue"),
        start=parse_bound(query.start_date, "startDate", end_of_day=False),
        end=parse_bound(query.end_date, "endDate", end_of_day=True),
    )


def build_predicate(filters: FilterRequest) -> Predicate:
    """Compose the constraints present in ``filters`` into one conjunction."""
    terms: list[Predicate] = []
    if filters.search is not None:
        terms.append(Like(SEARCH_FIELDS, filters.search))
    if filters.stage is not None:
        terms.append(Eq("stage", filters.stage))
    if filters.min_value is not None:
        terms.append(Ge("value", filters.min_value))
    if filters.max_value is not None:
        terms.append(Le("value", filters.max_value))
    if filters.start is not None:
        terms.append(Ge("created_at", filters.start))
    if filters.end is not None:
        terms.append(Le("created_at", filters.end))

    if not terms:
        return ALWAYS
    if len(terms) == 1:
        return terms[0]
    return And(tuple(terms))


# ──────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────

def _like_pattern(text: str) -> str:
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def to_sql(predicate: Predicate) -> ColumnElement[bool]:
    """Render ``predicate`` as a WHERE expression with bound parameters."""
    if isinstance(predicate, TruePredicate):
        return true()
    if isinstance(predicate, Eq):
        return COLUMNS[predicate.field] == predicate.value
    if isinstance(predicate, Ge):
        return COLUMNS[predicate.field] >= predicate.value
    if isinstance(predicate, Le):
        return COLUMNS[predicate.field] <= predicate.value
    if isinstance(predicate, Like):
        pattern = _like_pattern(predicate.text)
        return or_(*(COLUMNS[name].ilike(pattern, escape=LIKE_ESCAPE) for name in predicate.fields))
    if isinstance(predicate, And):
        return and_(true(), *(to_sql(term) for term in predicate.terms))
    raise TypeError(f"Unknown predicate node: {predicate!r}")


def evaluate(predicate: Predicate, row: Any) -> bool:
    """Evaluate ``predicate`` against an object exposing the deal attributes."""
    if isinstance(predicate, TruePredicate):
        return True
    if isinstance(predicate, Eq):
        return getattr(row, predicate.field) == predicate.value
    if isinstance(predicate, Ge):
        current = getattr(row, predicate.field)
        return current is not None and current >= predicate.value
    if isinstance(predicate, Le):
        current = getattr(row, predicate.field)
        return current is not None and current <= predicate.value
    if isinstance(predicate, Like):
        needle = predicate.text.casefold()
        return any(needle in (getattr(row, name) or "").casefold() for name in predicate.fields)
    if isinstance(predicate, And):
        return all(evaluate(term, row) for term in predicate.terms)
    raise TypeError(f"Unknown predicate node: {predicate!r}")
