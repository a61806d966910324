"""
PokéCompanion Backend: Request Dependencies
============================================

What:  FastAPI dependencies shared by the route modules: the authenticated
       user, the service handles built at startup, and the ownership check.
How:   Service instances live on `app.state` (set by create_app()) and are
       read back per request, so nothing here is a module-level singleton.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pokecompanion.exceptions import AuthenticationError, ForbiddenError
from pokecompanion.security import decode_access_token
from pokecompanion.services.auth_service import AuthService
from pokecompanion.services.favorites_service import FavoritesService
from pokecompanion.services.history_store import HistoryStore
from pokecompanion.services.lists_service import CustomListsService

logger = logging.getLogger(__name__)

# auto_error=False: a missing header becomes our AuthenticationError (401)
# instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity decoded from a verified access token."""
    id: int
    username: str


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Resolve the `Authorization: Bearer <token>` header to a CurrentUser.

    Raises:
        AuthenticationError: header missing, wrong scheme, token invalid or
                             expired, or payload missing id/username.
    """
    if credentials is None or not credentials.credentials:
        logger.warning(
            "Request blocked: missing bearer token for %s %s",
            request.method,
            request.url.path,
        )
        raise AuthenticationError(message="Access denied. No token provided.")

    try:
        payload = decode_access_token(credentials.credentials)
    except AuthenticationError as e:
        logger.warning(
            "Rejected token for %s %s: %s", request.method, request.url.path, e.message
        )
        raise

    return CurrentUser(id=payload["id"], username=payload["username"])


def require_owner(owner_id: int, user: CurrentUser, resource: str) -> None:
    """
    Ownership check performed before mutating a user-owned resource.

    Raises:
        ForbiddenError: the resource belongs to another user
    """
    if owner_id != user.id:
        logger.warning(
            "Unauthorized access attempt: user %s tried to modify %s owned by user %s",
            user.id,
            resource,
            owner_id,
        )
        raise ForbiddenError(resource=resource)


# ── Service providers ─────────────────────────────────────────────────────

def get_history_store(request: Request) -> HistoryStore:
    return request.app.state.history_store


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_favorites_service(request: Request) -> FavoritesService:
    return request.app.state.favorites_service


def get_lists_service(request: Request) -> CustomListsService:
    return request.app.state.lists_service
