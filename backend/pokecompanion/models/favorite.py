"""
PokéCompanion Backend: Favorite Model
======================================

One row per (user, Pokémon) pair. The composite primary key makes a Pokémon
a favorite at most once per user.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from pokecompanion.database import Base


class Favorite(Base):
    __tablename__ = "favorites"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # National Pokédex number; Pokémon data itself lives in the public PokéAPI
    pokemon_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, pokemon_id={self.pokemon_id})>"
