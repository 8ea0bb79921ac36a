"""
Pydantic schemas for the Deal API.
"""
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from dealdesk.models.deal import DealStage

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round to two fractional digits, half up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


# Decimals travel as JSON numbers. 15 significant digits survive the float
# round-trip, which covers NUMERIC(15, 2).
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class DealDraft(BaseModel):
    """A deal without its store-assigned fields. Used for create and full replace."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=255)
    contact_name: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    stage: DealStage = DealStage.NEW
    value: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=15, decimal_places=2)
    close_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("name", "contact_name", "company")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("stage", mode="before")
    @classmethod
    def default_stage(cls, v):
        if v is None or v == "":
            return DealStage.NEW
        return v

    @field_validator("value", mode="before")
    @classmethod
    def default_value(cls, v):
        if v is None or v == "":
            return Decimal("0.00")
        if isinstance(v, float):
            # Go through text so 0.1 stays 0.1
            return Decimal(repr(v))
        return v

    @field_validator("value")
    @classmethod
    def two_places(cls, v: Decimal) -> Decimal:
        return quantize_money(v)


class ListQuery(BaseModel):
    """Raw list-query options exactly as received on the query string."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    search: Optional[str] = None
    stage: Optional[str] = None
    min_value: Optional[str] = Field(default=None, alias="minValue")
    max_value: Optional[str] = Field(default=None, alias="maxValue")
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    page: Optional[str] = None
    limit: Optional[str] = None
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    sort_order: Optional[str] = Field(default=None, alias="sortOrder")


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class DealResponse(BaseModel):
    """Schema for a stored deal."""
    id: int
    name: str
    contact_name: str
    company: str
    stage: DealStage
    value: Money
    created_at: datetime
    close_date: Optional[date]
    description: Optional[str]

    model_config = {"from_attributes": True}


class Stats(BaseModel):
    """Aggregates over the rows matched by a predicate."""
    total_deals: int = 0
    new_deals: int = 0
    in_progress_deals: int = 0
    won_deals: int = 0
    lost_deals: int = 0
    total_value: Money = Decimal("0.00")
    avg_value: Optional[Money] = None
    min_value: Optional[Money] = None
    max_value: Optional[Money] = None


class Pagination(BaseModel):
    """Envelope returned with every paged read."""
    current_page: int
    total_pages: int
    total_records: int
    limit: int
    has_next: bool
    has_prev: bool


class FiltersEcho(BaseModel):
    """The recognised filter options as the client sent them."""
    search: Optional[str] = None
    stage: Optional[str] = None
    minValue: Optional[str] = None
    maxValue: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None


class Sorting(BaseModel):
    """The ordering actually applied."""
    sortBy: str
    sortOrder: str


class DealListData(BaseModel):
    """Page of deals, its pagination envelope and the in-scope statistics."""
    deals: list[DealResponse]
    pagination: Pagination
    filters: FiltersEcho
    sorting: Sorting
    statistics: Stats


class MessageData(BaseModel):
    message: str


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Failure envelope."""
    success: bool = False
    error: str
    message: str
