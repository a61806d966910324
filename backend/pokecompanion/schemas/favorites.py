"""
Favorites request/response schemas.
"""

from datetime import datetime

from pydantic import Field

from pokecompanion.schemas.common import CamelModel


class AddFavoriteRequest(CamelModel):
    pokemon_id: int = Field(ge=1, description="National Pokédex number")


class FavoriteResponse(CamelModel):
    pokemon_id: int
    created_at: datetime
