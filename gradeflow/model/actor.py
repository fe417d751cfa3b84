import enum

import pydantic as p

from .base import BaseModel
from .id import UserID


class Role(enum.Enum):
    Admin = "admin"
    Teacher = "teacher"


class Actor(BaseModel):
    """The authenticated caller, as asserted by the session layer"""

    model_config = p.ConfigDict(frozen=True)

    user_id: UserID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.Admin
