"""
PokéCompanion Backend: User Model
==================================

What:  ORM model for the `users` table.
Who:   AuthService for registration, login, profile and password changes.

Every other table references users.id with ON DELETE CASCADE, so removing a
user removes their favorites, history and lists.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from pokecompanion.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)

    email: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)

    # bcrypt hash; the plain password is never stored
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
