"""Registration and login routes."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from ..deps import CurrentIdentity, get_auth_service
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, UserEnvelope
from ..services.auth_service import AuthService
from ..validation import validate_payload

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: Any = Body(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """Register a new user and return a bearer token.

    Raises:
        ValidationError: If the payload is invalid
        Conflict: If the email is already registered
    """
    data = validate_payload(RegisterRequest, payload)
    user, token = await auth_service.register(data)
    return AuthResponse(message="User registered successfully", user=user, token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: Any = Body(None),
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """Exchange email and password for a bearer token.

    Raises:
        Unauthenticated: If the credentials do not match
    """
    data = validate_payload(LoginRequest, payload)
    user, token = await auth_service.login(data)
    return AuthResponse(message="Login successful", user=user, token=token)


@router.get("/me", response_model=UserEnvelope)
async def me(
    identity: CurrentIdentity,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserEnvelope:
    """Return the user behind the bearer token."""
    return UserEnvelope(user=await auth_service.get_user(identity))
