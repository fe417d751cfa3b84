"""Authentication dependencies for FastAPI routes"""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gradeflow.core import di
from gradeflow.engine.errors import Forbidden
from gradeflow.model import Actor, Role

from .jwt import JWTManager, TokenData

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(t.NamedTuple):
    actor: Actor
    token_data: TokenData


@di.inject
def decode_token(token: str, jwt_manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return jwt_manager.decode_token(token)


def get_current_actor(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> AuthContext:
    """Resolves the bearer token to the acting user

    Raises:
        HTTPException 401: if no token is provided or it is invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(actor=token_data.actor, token_data=token_data)


def require_role(*allowed_roles: Role) -> t.Callable[..., AuthContext]:
    """Dependency factory restricting a route to the given roles

    Usage:
        @router.post("/periods")
        def create_period(auth: AuthContext = Depends(require_admin)):
            ...
    """

    def check_role(auth: AuthContext = Depends(get_current_actor)) -> AuthContext:
        if auth.actor.role not in allowed_roles:
            raise Forbidden(f"role {auth.actor.role.value!r} is not authorized for this resource")
        return auth

    return check_role


require_admin = require_role(Role.Admin)
require_staff = require_role(Role.Admin, Role.Teacher)
