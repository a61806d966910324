"""
Custom list request/response schemas.
"""

from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from pokecompanion.schemas.common import CamelModel


class ListNameRequest(CamelModel):
    """Body of POST /api/lists and PUT /api/lists/{listId}."""
    name: str = Field(min_length=1, max_length=256)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class AddListPokemonRequest(CamelModel):
    pokemon_id: int = Field(ge=1, description="National Pokédex number")


class ListPokemonResponse(CamelModel):
    list_id: int
    pokemon_id: int


class CustomListResponse(CamelModel):
    id: int
    user_id: int
    name: str
    created_at: datetime


class CustomListDetailResponse(CustomListResponse):
    pokemons: List[ListPokemonResponse] = Field(default_factory=list)
