"""
PokéCompanion Backend: Favorites Service
=========================================

What:  CRUD for a user's favorite Pokémon (the `favorites` table).
How:   Stateless; methods receive the request's AsyncSession. Rows are keyed
       by (user_id, pokemon_id), so every operation is implicitly scoped to
       the calling user and needs no separate ownership check.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.exceptions import ConflictError, DatabaseError, NotFoundError
from pokecompanion.models.favorite import Favorite

logger = logging.getLogger(__name__)


class FavoritesService:

    async def list_favorites(self, db: AsyncSession, user_id: int) -> List[Favorite]:
        """Favorites of the user, most recently added first."""
        logger.info("Fetching favorites for user %s", user_id)
        try:
            result = await db.scalars(
                select(Favorite)
                .where(Favorite.user_id == user_id)
                .order_by(Favorite.created_at.desc(), Favorite.pokemon_id)
            )
            return list(result.all())
        except SQLAlchemyError as e:
            logger.error("Database error listing favorites for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not retrieve favorites. Please try again.") from e

    async def add_favorite(self, db: AsyncSession, user_id: int, pokemon_id: int) -> Favorite:
        """
        Raises:
            ConflictError: the Pokémon is already a favorite
        """
        logger.info("Adding favorite (user=%s, pokemon=%s)", user_id, pokemon_id)
        try:
            if await db.get(Favorite, (user_id, pokemon_id)) is not None:
                raise ConflictError(
                    message="This Pokémon is already in your favorites",
                    context={"pokemon_id": pokemon_id},
                )
            favorite = Favorite(user_id=user_id, pokemon_id=pokemon_id)
            db.add(favorite)
            await db.flush()
            return favorite
        except IntegrityError as e:
            raise ConflictError(message="This Pokémon is already in your favorites") from e
        except SQLAlchemyError as e:
            logger.error("Database error adding favorite for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not add the favorite. Please try again.") from e

    async def remove_favorite(self, db: AsyncSession, user_id: int, pokemon_id: int) -> Favorite:
        """
        Raises:
            NotFoundError: the Pokémon is not among the user's favorites
        """
        logger.info("Removing favorite (user=%s, pokemon=%s)", user_id, pokemon_id)
        try:
            favorite = await db.get(Favorite, (user_id, pokemon_id))
            if favorite is None:
                raise NotFoundError(resource="favorite", resource_id=pokemon_id)
            await db.delete(favorite)
            await db.flush()
            return favorite
        except SQLAlchemyError as e:
            logger.error("Database error removing favorite for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not remove the favorite. Please try again.") from e
