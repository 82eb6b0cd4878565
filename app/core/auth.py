"""
FastAPI authentication dependencies.

The frontend sends the credential issued by ``/auth/login`` in the
Authorization header. Every protected route goes through
``get_current_user``: signature and expiry check, then a directory lookup for
the caller's current role.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core import security
from app.core.errors import Forbidden, Unauthenticated
from app.models.enums import Role
from app.services.directory import Identity

# auto_error is off so a missing header surfaces as our 401, not Starlette's 403
security_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> Identity:
    """
    FastAPI dependency returning the authenticated caller.

    Usage in route:
        @router.get("/protected")
        def protected_route(current_user: Identity = Depends(get_current_user)):
            return {"user_id": current_user.id, "role": current_user.role}

    Raises:
        Unauthenticated: header missing, token invalid/expired, or user gone
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return security.verify(db, credentials.credentials)


def require_role(*roles: Role):
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.get("/users")
        def list_users(current_user: Identity = Depends(require_role(Role.IT_COORDINATOR))):
            ...
    """
    allowed = frozenset(roles)

    def role_checker(current_user: Identity = Depends(get_current_user)) -> Identity:
        if current_user.role not in allowed:
            raise Forbidden("Insufficient permissions")
        return current_user
    return role_checker
