"""
PokéCompanion Backend: Custom Lists Service
============================================

What:  CRUD for user-defined Pokémon lists and the Pokémon inside them.
How:   Stateless; methods receive the request's AsyncSession. Ownership of a
       list is checked by the route layer (get_list + require_owner) before
       any mutation reaches this service.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.exceptions import ConflictError, DatabaseError, NotFoundError
from pokecompanion.models.custom_list import CustomList, CustomListPokemon

logger = logging.getLogger(__name__)


class CustomListsService:

    async def list_for_user(self, db: AsyncSession, user_id: int) -> List[CustomList]:
        """Lists of the user, newest first (without loading order guarantees on pokemons)."""
        try:
            result = await db.scalars(
                select(CustomList)
                .where(CustomList.user_id == user_id)
                .order_by(CustomList.created_at.desc(), CustomList.id.desc())
            )
            return list(result.all())
        except SQLAlchemyError as e:
            logger.error("Database error listing custom lists for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not retrieve your lists. Please try again.") from e

    async def get_list(self, db: AsyncSession, list_id: int) -> Optional[CustomList]:
        try:
            return await db.get(CustomList, list_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching custom list %s: %s", list_id, e)
            raise DatabaseError(message="Could not retrieve the list. Please try again.") from e

    async def create_list(self, db: AsyncSession, user_id: int, name: str) -> CustomList:
        try:
            custom_list = CustomList(user_id=user_id, name=name, pokemons=[])
            db.add(custom_list)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating list for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not create the list. Please try again.") from e
        logger.info("Custom list %s created by user %s", custom_list.id, user_id)
        return custom_list

    async def rename_list(self, db: AsyncSession, custom_list: CustomList, name: str) -> CustomList:
        custom_list.name = name
        custom_list.created_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error renaming list %s: %s", custom_list.id, e)
            raise DatabaseError(message="Could not update the list. Please try again.") from e
        return custom_list

    async def delete_list(self, db: AsyncSession, custom_list: CustomList) -> None:
        try:
            await db.delete(custom_list)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting list %s: %s", custom_list.id, e)
            raise DatabaseError(message="Could not delete the list. Please try again.") from e
        logger.info("Custom list %s deleted", custom_list.id)

    async def add_pokemon(self, db: AsyncSession, list_id: int, pokemon_id: int) -> CustomListPokemon:
        """
        Raises:
            ConflictError: the Pokémon is already in the list
        """
        try:
            if await db.get(CustomListPokemon, (list_id, pokemon_id)) is not None:
                raise ConflictError(
                    message="This Pokémon is already in the list",
                    context={"list_id": list_id, "pokemon_id": pokemon_id},
                )
            entry = CustomListPokemon(list_id=list_id, pokemon_id=pokemon_id)
            db.add(entry)
            await db.flush()
            return entry
        except IntegrityError as e:
            raise ConflictError(message="This Pokémon is already in the list") from e
        except SQLAlchemyError as e:
            logger.error("Database error adding pokemon %s to list %s: %s", pokemon_id, list_id, e)
            raise DatabaseError(message="Could not add the Pokémon to the list. Please try again.") from e

    async def remove_pokemon(self, db: AsyncSession, list_id: int, pokemon_id: int) -> None:
        """
        Raises:
            NotFoundError: the Pokémon is not in the list
        """
        try:
            entry = await db.get(CustomListPokemon, (list_id, pokemon_id))
            if entry is None:
                raise NotFoundError(resource="list entry", resource_id=pokemon_id)
            await db.delete(entry)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error removing pokemon %s from list %s: %s", pokemon_id, list_id, e)
            raise DatabaseError(message="Could not remove the Pokémon from the list. Please try again.") from e
