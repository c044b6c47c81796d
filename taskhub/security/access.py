"""Role-based access checks."""

from typing import Optional

from ..errors import Forbidden, Unauthenticated
from ..models.user import Identity


def ensure_admin(identity: Optional[Identity]) -> Identity:
    """Allow only admin identities through.

    Raises:
        Unauthenticated: If no verified identity is attached to the request
        Forbidden: If the identity is not an admin
    """
    if identity is None:
        raise Unauthenticated("Authentication required")

    if not identity.is_admin:
        raise Forbidden("Admin access required")

    return identity
