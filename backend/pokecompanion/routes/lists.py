"""
PokéCompanion Backend: Custom List Route Handlers
==================================================

What:  /api/lists CRUD plus /api/lists/{listId}/pokemon membership routes.
How:   Every route addressing a list id first loads it and runs the
       ownership check (`_owned_list`): 404 when missing, 403 when it belongs
       to another user.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.database import get_db_session
from pokecompanion.dependencies import (
    CurrentUser,
    get_current_user,
    get_lists_service,
    require_owner,
)
from pokecompanion.exceptions import NotFoundError
from pokecompanion.models.custom_list import CustomList
from pokecompanion.schemas.common import DataResponse, ErrorResponse, MessageResponse
from pokecompanion.schemas.lists import (
    AddListPokemonRequest,
    CustomListDetailResponse,
    CustomListResponse,
    ListNameRequest,
    ListPokemonResponse,
)
from pokecompanion.services.lists_service import CustomListsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lists", tags=["Custom Lists"])

_OWNERSHIP_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse, "description": "List belongs to another user"},
    404: {"model": ErrorResponse},
}


async def _owned_list(
    list_id: int = Path(ge=1, description="Custom list identifier"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
) -> CustomList:
    custom_list = await service.get_list(db, list_id)
    if custom_list is None:
        raise NotFoundError(resource="list", resource_id=list_id)
    require_owner(custom_list.user_id, user, "list")
    return custom_list


@router.get(
    "",
    response_model=DataResponse[List[CustomListResponse]],
    responses={401: {"model": ErrorResponse}},
    summary="Lists of the authenticated user",
)
async def get_lists(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    lists = await service.list_for_user(db, user.id)
    return DataResponse(
        message="Lists fetched",
        data=[CustomListResponse.model_validate(item) for item in lists],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[CustomListResponse],
    responses={401: {"model": ErrorResponse}},
    summary="Create a list",
)
async def create_list(
    body: ListNameRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    custom_list = await service.create_list(db, user.id, body.name)
    return DataResponse(message="List created", data=CustomListResponse.model_validate(custom_list))


@router.get(
    "/{list_id}",
    response_model=DataResponse[CustomListDetailResponse],
    responses=_OWNERSHIP_ERRORS,
    summary="A list with its Pokémon",
)
async def get_list(custom_list: CustomList = Depends(_owned_list)):
    return DataResponse(
        message="List details fetched",
        data=CustomListDetailResponse.model_validate(custom_list),
    )


@router.put(
    "/{list_id}",
    response_model=DataResponse[CustomListResponse],
    responses=_OWNERSHIP_ERRORS,
    summary="Rename a list",
)
async def rename_list(
    body: ListNameRequest,
    custom_list: CustomList = Depends(_owned_list),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    updated = await service.rename_list(db, custom_list, body.name)
    return DataResponse(message="List updated", data=CustomListResponse.model_validate(updated))


@router.delete(
    "/{list_id}",
    response_model=MessageResponse,
    responses=_OWNERSHIP_ERRORS,
    summary="Delete a list and its entries",
)
async def delete_list(
    custom_list: CustomList = Depends(_owned_list),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    await service.delete_list(db, custom_list)
    return MessageResponse(message="List deleted")


@router.post(
    "/{list_id}/pokemon",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[ListPokemonResponse],
    responses={**_OWNERSHIP_ERRORS, 409: {"model": ErrorResponse}},
    summary="Add a Pokémon to a list",
)
async def add_pokemon_to_list(
    body: AddListPokemonRequest,
    custom_list: CustomList = Depends(_owned_list),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    entry = await service.add_pokemon(db, custom_list.id, body.pokemon_id)
    return DataResponse(message="Pokémon added to list", data=ListPokemonResponse.model_validate(entry))


@router.delete(
    "/{list_id}/pokemon/{pokemon_id}",
    response_model=MessageResponse,
    responses=_OWNERSHIP_ERRORS,
    summary="Remove a Pokémon from a list",
)
async def remove_pokemon_from_list(
    pokemon_id: int = Path(ge=1),
    custom_list: CustomList = Depends(_owned_list),
    db: AsyncSession = Depends(get_db_session),
    service: CustomListsService = Depends(get_lists_service),
):
    await service.remove_pokemon(db, custom_list.id, pokemon_id)
    return MessageResponse(message="Pokémon removed from list")
