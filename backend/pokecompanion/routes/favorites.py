"""
Favorites route handlers: /api/favorites (authenticated).
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.database import get_db_session
from pokecompanion.dependencies import CurrentUser, get_current_user, get_favorites_service
from pokecompanion.schemas.common import DataResponse, ErrorResponse, MessageResponse
from pokecompanion.schemas.favorites import AddFavoriteRequest, FavoriteResponse
from pokecompanion.services.favorites_service import FavoritesService

router = APIRouter(prefix="/api/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=DataResponse[List[FavoriteResponse]],
    responses={401: {"model": ErrorResponse}},
    summary="Favorite Pokémon of the authenticated user",
)
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: FavoritesService = Depends(get_favorites_service),
):
    favorites = await service.list_favorites(db, user.id)
    return DataResponse(
        message="Favorites fetched",
        data=[FavoriteResponse.model_validate(f) for f in favorites],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[FavoriteResponse],
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Add a Pokémon to favorites",
)
async def add_favorite(
    body: AddFavoriteRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: FavoritesService = Depends(get_favorites_service),
):
    favorite = await service.add_favorite(db, user.id, body.pokemon_id)
    return DataResponse(message="Pokémon added to favorites", data=FavoriteResponse.model_validate(favorite))


@router.delete(
    "/{pokemon_id}",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Remove a Pokémon from favorites",
)
async def remove_favorite(
    pokemon_id: int = Path(ge=1),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: FavoritesService = Depends(get_favorites_service),
):
    await service.remove_favorite(db, user.id, pokemon_id)
    return MessageResponse(message="Pokémon removed from favorites")
