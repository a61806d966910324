"""
Search history request/response schemas.
"""

from datetime import datetime

from pydantic import Field, field_validator

from pokecompanion.models.search_history import SEARCH_TERM_MAX_LENGTH
from pokecompanion.schemas.common import CamelModel


class HistoryEntryResponse(CamelModel):
    id: int = Field(description="History entry identifier")
    user_id: int = Field(description="Owner of the entry")
    search_term: str = Field(description="Term as it was searched")
    created_at: datetime = Field(description="Last time the term was searched (UTC)")


class AddSearchTermRequest(CamelModel):
    """
    Body of POST /api/search-history.

    Surrounding whitespace is stripped before the length check, so "  " is
    rejected and " pikachu " is stored as "pikachu".
    """
    search_term: str = Field(min_length=1, max_length=SEARCH_TERM_MAX_LENGTH)

    @field_validator("search_term", mode="before")
    @classmethod
    def strip_term(cls, v):
        return v.strip() if isinstance(v, str) else v
