"""Dependency injection helpers for FastAPI.

Settings, the token verifier and the store group are built once by
``create_app`` and kept on ``app.state``; these helpers hand them to routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from .config import Settings
from .models.user import Identity
from .security.access import ensure_admin
from .security.tokens import TokenVerifier
from .services.auth_service import AuthService
from .services.project_service import ProjectService
from .services.task_service import TaskService
from .store.group import StoreGroup


def get_settings(request: Request) -> Settings:
    """Get application settings."""
    return request.app.state.settings


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_store(request: Request) -> StoreGroup:
    """Get the store group opened during application startup."""
    return request.app.state.store


def get_task_service(store: Annotated[StoreGroup, Depends(get_store)]) -> TaskService:
    return TaskService(store.task_store)


def get_project_service(store: Annotated[StoreGroup, Depends(get_store)]) -> ProjectService:
    return ProjectService(store.project_store)


def get_auth_service(
    store: Annotated[StoreGroup, Depends(get_store)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthService:
    return AuthService(store.user_store, verifier)


def get_current_identity(
    request: Request,
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Identity:
    """Verify the bearer token and attach the identity to the request.

    Raises:
        Unauthenticated: 401 when no token is presented
        InvalidToken: 403 when the token does not verify
    """
    identity = verifier.verify_header(authorization)
    request.state.identity = identity
    return identity


def get_request_identity(request: Request) -> Optional[Identity]:
    """Identity attached by ``get_current_identity``, if it ran."""
    return getattr(request.state, "identity", None)


def require_admin(
    identity: Annotated[Optional[Identity], Depends(get_request_identity)],
) -> Identity:
    """Admin-only gate. Declare after ``get_current_identity`` on a route."""
    return ensure_admin(identity)


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
