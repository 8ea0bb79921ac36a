"""
FastAPI dependencies for dependency injection.
"""
from typing import Annotated

from fastapi import Depends, Request

from dealdesk.repositories.deal_repo import DealRepository
from dealdesk.services.query_coordinator import QueryCoordinator


def get_deal_repository(request: Request) -> DealRepository:
    """The process-wide repository created in the application lifespan."""
    return request.app.state.deal_repository


async def get_query_coordinator(
    repo: Annotated[DealRepository, Depends(get_deal_repository)],
) -> QueryCoordinator:
    """Get QueryCoordinator instance."""
    return QueryCoordinator(repo)


DealRepo = Annotated[DealRepository, Depends(get_deal_repository)]
Coordinator = Annotated[QueryCoordinator, Depends(get_query_coordinator)]
