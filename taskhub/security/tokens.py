"""Bearer token issuing and verification."""

import logging
from datetime import timedelta
from typing import Optional, Union

import jwt

from ..config import Settings
from ..errors import InternalError, InvalidToken, TaskHubError, Unauthenticated
from ..models.task import utc_now
from ..models.user import Identity, Role
from ..schemas import MAX_ID

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header value.

    Returns None when the header is absent, uses another scheme, or carries
    no token.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


class TokenVerifier:
    """Signs and verifies HS256 bearer tokens with the server-held secret.

    Claims carried by a token are ``userId`` and ``role`` plus the standard
    ``iat``/``exp`` timestamps.
    """

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(minutes=settings.jwt_expires_minutes)

    def issue(
        self,
        user_id: int,
        role: Union[Role, str],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Create a signed token for a user.

        Args:
            user_id: User identifier stored in the ``userId`` claim
            role: User role stored in the ``role`` claim
            expires_delta: Lifetime override; defaults to the configured one

        Returns:
            Encoded token string
        """
        issued_at = utc_now()
        lifetime = self._lifetime if expires_delta is None else expires_delta
        claims = {
            "userId": user_id,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Identity:
        """Verify a raw token and decode its identity claims.

        Raises:
            InvalidToken: If the signature, expiry or claims are invalid
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise InvalidToken() from e

        user_id = claims.get("userId")
        valid_id = isinstance(user_id, int) and not isinstance(user_id, bool)
        if not valid_id or not 0 < user_id <= MAX_ID:
            logger.debug("Token rejected: missing or malformed userId claim")
            raise InvalidToken()

        try:
            role = Role(claims.get("role"))
        except ValueError as e:
            logger.debug(f"Token rejected: unknown role {claims.get('role')!r}")
            raise InvalidToken() from e

        return Identity(id=user_id, role=role)

    def verify_header(self, authorization: Optional[str]) -> Identity:
        """Verify an ``Authorization`` header value.

        Raises:
            Unauthenticated: If no bearer token is present
            InvalidToken: If the token does not verify
            InternalError: On any unexpected failure
        """
        token = extract_bearer_token(authorization)
        if not token:
            raise Unauthenticated()

        try:
            return self.decode(token)
        except TaskHubError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error verifying token: {str(e)}", exc_info=True)
            raise InternalError("Authentication error") from e
