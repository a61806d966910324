"""
PokéCompanion Backend: Search History Route Handlers
=====================================================

What:  GET/POST /api/search-history and DELETE /api/search-history/{id}.
How:   Authenticates the caller, delegates to the HistoryStore, and performs
       the ownership check before deletes. The store itself never checks
       ownership.
Who:   Called by the frontend search bar and its "recent searches" dropdown.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status

from pokecompanion.dependencies import (
    CurrentUser,
    get_current_user,
    get_history_store,
    require_owner,
)
from pokecompanion.exceptions import NotFoundError
from pokecompanion.schemas.common import DataResponse, ErrorResponse, MessageResponse
from pokecompanion.schemas.history import AddSearchTermRequest, HistoryEntryResponse
from pokecompanion.services.history_store import HistoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search-history", tags=["Search History"])


@router.get(
    "",
    response_model=DataResponse[List[HistoryEntryResponse]],
    responses={401: {"model": ErrorResponse}},
    summary="Recent searches of the authenticated user",
    description="Returns at most the retention limit of entries, most recently searched first.",
)
async def get_search_history(
    user: CurrentUser = Depends(get_current_user),
    store: HistoryStore = Depends(get_history_store),
):
    entries = await store.get_recent(user.id)
    return DataResponse(
        message="Search history fetched",
        data=[HistoryEntryResponse.model_validate(entry) for entry in entries],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[HistoryEntryResponse],
    responses={401: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
    summary="Record a search term",
    description=(
        "Adds the term to the user's history. Searching a term again moves it "
        "back to the top instead of creating a duplicate."
    ),
)
async def add_search_term(
    body: AddSearchTermRequest,
    user: CurrentUser = Depends(get_current_user),
    store: HistoryStore = Depends(get_history_store),
):
    entry = await store.record_search(user.id, body.search_term)
    logger.info("Search term saved for user %s", user.id)
    return DataResponse(
        message="Search term added to history",
        data=HistoryEntryResponse.model_validate(entry),
    )


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse, "description": "Entry belongs to another user"},
        404: {"model": ErrorResponse},
    },
    summary="Delete one history entry",
)
async def delete_search_term(
    entry_id: int = Path(ge=1, description="History entry identifier"),
    user: CurrentUser = Depends(get_current_user),
    store: HistoryStore = Depends(get_history_store),
):
    entry = await store.find_by_id(entry_id)
    if entry is None:
        raise NotFoundError(resource="search history entry", resource_id=entry_id)
    require_owner(entry.user_id, user, "search history entry")

    await store.remove_entry(entry_id)
    logger.info("Search history entry %s removed by user %s", entry_id, user.id)
    return MessageResponse(message="Search history entry removed")
