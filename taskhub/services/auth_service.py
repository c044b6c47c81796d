"""Registration, login and user lookup."""

import logging
from typing import Tuple

import aiosqlite

from ..errors import Conflict, NotFound, Unauthenticated
from ..models.user import Identity, User
from ..schemas import LoginRequest, RegisterRequest
from ..security.passwords import hash_password, verify_password
from ..security.tokens import TokenVerifier
from ..store.user_store import SqliteUserStore
from ..utils.logging import log_user_action

logger = logging.getLogger(__name__)


class AuthService:
    """Issues tokens for registered users."""

    def __init__(self, store: SqliteUserStore, verifier: TokenVerifier):
        self._store = store
        self._verifier = verifier

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """Create a user with the default role and issue a token.

        Raises:
            Conflict: If the email is already registered
        """
        try:
            user = await self._store.create_user(
                email=data.email,
                password_hash=hash_password(data.password),
                name=data.name,
            )
        except aiosqlite.IntegrityError as e:
            logger.info(f"Registration refused for existing email {data.email}")
            raise Conflict("User with this email already exists") from e

        log_user_action(str(user.id), "register")
        return user, self._verifier.issue(user.id, user.role)

    async def login(self, data: LoginRequest) -> Tuple[User, str]:
        """Check credentials and issue a token.

        Raises:
            Unauthenticated: If the email is unknown or the password is wrong
        """
        record = await self._store.get_credentials(data.email)
        if record is None or not verify_password(data.password, record[1]):
            logger.info(f"Failed login for {data.email}")
            raise Unauthenticated("Invalid email or password")

        user = record[0]
        log_user_action(str(user.id), "login")
        return user, self._verifier.issue(user.id, user.role)

    async def get_user(self, identity: Identity) -> User:
        user = await self._store.get_user(identity.id)
        if user is None:
            raise NotFound("User not found")
        return user
