__all__ = [
    "AuthContext",
    "JWTManager",
    "TokenData",
    "decode_token",
    "get_current_actor",
    "require_admin",
    "require_role",
    "require_staff",
]

from .jwt import JWTManager, TokenData
from .middleware import AuthContext, decode_token, get_current_actor, require_admin, require_role, require_staff
