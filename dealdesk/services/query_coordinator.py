"""
QueryCoordinator: answers list-queries and the summary statistics.

A list-query returns the page of deals, its pagination envelope and the
statistics of the whole filtered set, all for one predicate:

1. Validate and plan (predicate, sort, page window). Nothing touches the store
   until the request is valid.
2. count(predicate) -> envelope
3. page(predicate, sort, offset, limit), skipped when offset >= count
4. aggregate(predicate)

The three reads are independent statements. A writer committing between them
can make the page shorter than ``limit`` while ``has_next`` is true, or shift
the stage counts by the same number of rows; callers accept that drift.
"""
from dataclasses import dataclass

from dealdesk.core.logging import get_logger
from dealdesk.query.pagination import PageRequest, paginate, parse_page_request
from dealdesk.query.predicate import ALWAYS, Predicate, build_predicate, parse_filters
from dealdesk.query.sorting import SortSpec, resolve_sort
from dealdesk.repositories.deal_repo import DealRepository
from dealdesk.schemas.deal import (
    DealListData,
    DealResponse,
    FiltersEcho,
    ListQuery,
    Sorting,
    Stats,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class QueryPlan:
    predicate: Predicate
    sort: SortSpec
    window: PageRequest


def plan_list_query(query: ListQuery) -> QueryPlan:
    """Validate ``query`` and derive the predicate, ordering and page window."""
    return QueryPlan(
        predicate=build_predicate(parse_filters(query)),
        sort=resolve_sort(query.sort_by, query.sort_order),
        window=parse_page_request(query.page, query.limit),
    )


class QueryCoordinator:
    def __init__(self, repo: DealRepository):
        self.repo = repo

    async def list_deals(self, query: ListQuery) -> DealListData:
        plan = plan_list_query(query)

        total = await self.repo.count(plan.predicate)
        pagination = paginate(plan.window, total)
        deals = []
        # Offsets past the last row may not fit the store's integer type
        if plan.window.offset < total:
            deals = await self.repo.page(plan.predicate, plan.sort, plan.window.offset, plan.window.limit)
        statistics = await self.repo.aggregate(plan.predicate)

        logger.debug(
            "List query answered",
            total=total,
            page=plan.window.page,
            returned=len(deals),
            sort=f"{plan.sort.key} {plan.sort.direction}",
        )

        return DealListData(
            deals=[DealResponse.model_validate(deal) for deal in deals],
            pagination=pagination,
            filters=FiltersEcho(
                search=query.search,
                stage=query.stage,
                minValue=query.min_value,
                maxValue=query.max_value,
                startDate=query.start_date,
                endDate=query.end_date,
            ),
            sorting=Sorting(sortBy=plan.sort.key, sortOrder=plan.sort.direction),
            statistics=statistics,
        )

    async def statistics(self) -> Stats:
        """Unfiltered statistics over every deal."""
        return await self.repo.aggregate(ALWAYS)
