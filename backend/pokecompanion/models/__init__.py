"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from pokecompanion.models.user import User
from pokecompanion.models.favorite import Favorite
from pokecompanion.models.search_history import SearchHistoryEntry
from pokecompanion.models.custom_list import CustomList, CustomListPokemon

__all__ = [
    "User",
    "Favorite",
    "SearchHistoryEntry",
    "CustomList",
    "CustomListPokemon",
]
