"""
PokéCompanion Backend: Auth Service
====================================

What:  Registration, login, profile lookup and password change.
How:   Stateless; every method receives the request's AsyncSession. Passwords
       are hashed with bcrypt and sessions are JWT bearer tokens (security.py).
Who:   Called by the /api/auth routes.

Login answers "invalid credentials" both for an unknown email
and for a wrong password, so the endpoint cannot be used to probe accounts.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.exceptions import AuthenticationError, ConflictError, DatabaseError
from pokecompanion.models.user import User
from pokecompanion.schemas.auth import LoginResult, UserResponse
from pokecompanion.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """Account operations on the `users` table."""

    async def register(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
    ) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            ConflictError: username or email already taken
            DatabaseError: insert failed for another reason
        """
        try:
            existing = (
                await db.scalars(
                    select(User).where(or_(User.username == username, User.email == email))
                )
            ).all()
            if any(user.username == username for user in existing):
                raise ConflictError(message="Username is already in use", context={"field": "username"})
            if existing:
                raise ConflictError(message="Email is already in use", context={"field": "email"})

            user = User(
                username=username,
                email=email,
                password_hash=await hash_password(password),
            )
            db.add(user)
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same name/email
            raise ConflictError(message="Username or email is already in use") from e
        except SQLAlchemyError as e:
            logger.error("Database error registering user %r: %s", username, e)
            raise DatabaseError(message="Could not register the user. Please try again.") from e

        logger.info("User registered: %s (id=%s)", user.username, user.id)
        return user

    async def login(self, db: AsyncSession, email: str, password: str) -> LoginResult:
        """
        Check credentials and issue an access token.

        Raises:
            AuthenticationError: unknown email or wrong password
        """
        logger.info("Login attempt for %s", email)
        user = await self.find_by_email(db, email)
        if user is None or not await verify_password(password, user.password_hash):
            logger.warning("Failed login for %s: invalid credentials", email)
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        token = create_access_token(user.id, user.username)
        logger.info("Successful login for %s (id=%s)", user.email, user.id)
        return LoginResult(token=token, user=UserResponse.model_validate(user))

    async def get_profile(self, db: AsyncSession, user_id: int) -> User:
        """The user behind a token; 401 when the account no longer exists."""
        user = await self._get(db, user_id)
        if user is None:
            raise AuthenticationError(message="User not found")
        return user

    async def change_password(
        self,
        db: AsyncSession,
        user_id: int,
        old_password: str,
        new_password: str,
    ) -> None:
        user = await self.get_profile(db, user_id)
        if not await verify_password(old_password, user.password_hash):
            logger.warning("Password change rejected for user %s: wrong current password", user_id)
            raise AuthenticationError(message="Current password is incorrect")

        user.password_hash = await hash_password(new_password)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error changing password for user %s: %s", user_id, e)
            raise DatabaseError(message="Could not change the password. Please try again.") from e
        logger.info("Password changed for user %s", user_id)

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            return await db.scalar(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", e)
            raise DatabaseError() from e

    async def _get(self, db: AsyncSession, user_id: int) -> Optional[User]:
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, e)
            raise DatabaseError() from e
