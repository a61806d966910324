"""
PokéCompanion Backend: Search History Model
============================================

What:  ORM model for the `search_history` table.
Who:   HistoryStore (upsert, listing, trimming, deletion).

Table Design:
    - UNIQUE (user_id, search_term): target of the upsert; a user never has
      two live entries for the same term (case-sensitive, exact match).
    - created_at: "last touched" time, refreshed whenever the term is searched
      again, not only at insert.
    - INDEX (user_id, created_at DESC): serves both "most recent N for a user"
      queries (listing and trimming).
"""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pokecompanion.database import Base

SEARCH_TERM_MAX_LENGTH = 256


class SearchHistoryEntry(Base):
    """
    One search term of one user.

    Lifecycle:
        1. Inserted on the first search of a term by a user
        2. created_at refreshed on every repeated search of that term
        3. Deleted by the owner (by id) or by retention trimming once the user
           holds more than the configured limit
    """

    __tablename__ = "search_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    search_term: Mapped[str] = mapped_column(String(SEARCH_TERM_MAX_LENGTH), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "search_term", name="uq_search_history_user_term"),
        Index("idx_search_history_user_created", user_id, created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<SearchHistoryEntry(id={self.id}, user_id={self.user_id}, "
            f"search_term='{self.search_term}', created_at='{self.created_at}')>"
        )
