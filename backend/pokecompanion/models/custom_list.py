"""
PokéCompanion Backend: Custom List Models
==========================================

What:  `custom_lists` (named lists owned by a user) and the
       `custom_list_pokemons` pivot table (Pokémon ids inside a list).

Deleting a list cascades to its pivot rows both in the database
(ON DELETE CASCADE) and in the ORM (delete-orphan).
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokecompanion.database import Base


class CustomList(Base):
    __tablename__ = "custom_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(256), nullable=False)

    # Refreshed on rename, so "newest first" ordering surfaces recently edited lists
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # selectin: async sessions cannot lazy-load on attribute access
    pokemons: Mapped[List["CustomListPokemon"]] = relationship(
        back_populates="custom_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="CustomListPokemon.pokemon_id",
    )

    __table_args__ = (
        Index("idx_custom_lists_user_created", user_id, created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<CustomList(id={self.id}, user_id={self.user_id}, name='{self.name}')>"


class CustomListPokemon(Base):
    __tablename__ = "custom_list_pokemons"

    list_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("custom_lists.id", ondelete="CASCADE"),
        primary_key=True,
    )

    pokemon_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    custom_list: Mapped[CustomList] = relationship(back_populates="pokemons")

    def __repr__(self) -> str:
        return f"<CustomListPokemon(list_id={self.list_id}, pokemon_id={self.pokemon_id})>"
