__all__ = [
    "EnumValuesType",
    "ExtendedOperations",
]

import alembic.operations
from sqlalchemy.dialects.postgresql import ENUM

from .enum import EnumValuesType


class ExtendedOperations(alembic.operations.Operations):
    def create_enum_type(self, type_name: str, values: list[str], schema: str | None = None) -> ENUM: ...
    def drop_enum_type(self, type_name: str, values: list[str] | None = None, schema: str | None = None): ...
