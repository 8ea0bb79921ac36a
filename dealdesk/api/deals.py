"""
Deals API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Query
from starlette import status

from dealdesk.core.deps import Coordinator, DealRepo
from dealdesk.core.logging import get_logger
from dealdesk.schemas.deal import (
    ApiResponse,
    DealDraft,
    DealListData,
    DealResponse,
    ListQuery,
    MessageData,
    Stats,
)

logger = get_logger(__name__)

router = APIRouter()


# ──────────────────────────────────────────────
# List-query and statistics
# ──────────────────────────────────────────────

@router.get("", response_model=ApiResponse[DealListData])
async def list_deals(
    coordinator: Coordinator,
    search: Optional[str] = Query(default=None, description="Substring of name, contact or company"),
    stage: Optional[str] = Query(default=None, description="Stage literal or 'all'"),
    min_value: Optional[str] = Query(default=None, alias="minValue"),
    max_value: Optional[str] = Query(default=None, alias="maxValue"),
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    page: Optional[str] = Query(default=None, description="Page number, from 1"),
    limit: Optional[str] = Query(default=None, description="Items per page, 1-100"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[str] = Query(default=None, alias="sortOrder"),
):
    """List deals with search, filters, sorting, pagination and in-scope statistics."""
    query = ListQuery(
        search=search,
        stage=stage,
        min_value=min_value,
        max_value=max_value,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse[DealListData](data=await coordinator.list_deals(query))


@router.get("/stats/summary", response_model=ApiResponse[Stats])
async def get_statistics(coordinator: Coordinator):
    """Statistics over every deal."""
    return ApiResponse[Stats](data=await coordinator.statistics())


# ──────────────────────────────────────────────
# CRUD
# ──────────────────────────────────────────────

@router.get("/{deal_id}", response_model=ApiResponse[DealResponse])
async def get_deal(deal_id: int, repo: DealRepo):
    """Get a specific deal by ID."""
    deal = await repo.get(deal_id)
    return ApiResponse[DealResponse](data=DealResponse.model_validate(deal))


@router.post("", response_model=ApiResponse[DealResponse], status_code=status.HTTP_201_CREATED)
async def create_deal(data: DealDraft, repo: DealRepo):
    """Create a new deal."""
    deal = await repo.insert(data)
    logger.info("Deal created", deal_id=deal.id, stage=deal.stage.value)
    return ApiResponse[DealResponse](data=DealResponse.model_validate(deal), message="Deal created successfully")


@router.put("/{deal_id}", response_model=ApiResponse[DealResponse])
async def update_deal(deal_id: int, data: DealDraft, repo: DealRepo):
    """Replace every editable field of a deal."""
    deal = await repo.update(deal_id, data)
    logger.info("Deal updated", deal_id=deal_id)
    return ApiResponse[DealResponse](data=DealResponse.model_validate(deal), message="Deal updated successfully")


@router.delete("/{deal_id}", response_model=ApiResponse[MessageData])
async def delete_deal(deal_id: int, repo: DealRepo):
    """Delete a deal."""
    await repo.delete(deal_id)
    logger.info("Deal deleted", deal_id=deal_id)
    message = "Deal deleted successfully"
    return ApiResponse[MessageData](data=MessageData(message=message), message=message)
