from __future__ import annotations

import enum
import typing as t

from alembic.operations import MigrateOperation, Operations
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.types import Enum as EnumType


class EnumValuesType(EnumType):
    """Binds enum members by value rather than by name

    Native enum types are named after `name`; on backends without them the
    column gets a CHECK constraint listing the values.
    """

    cache_ok = True

    def __init__(self, enum_class: type[enum.Enum], **kwargs: t.Any):
        kwargs["values_callable"] = self._get_values
        kwargs.setdefault("create_constraint", True)
        kwargs.setdefault("validate_strings", True)
        super().__init__(enum_class, **kwargs)

    @staticmethod
    def _get_values(meta: type[enum.Enum]) -> list[str]:
        return [e.value for e in meta]


@Operations.register_operation("create_enum_type")
class CreateEnumTypeOp(MigrateOperation):
    def __init__(self, type_name: str, values: list[str], schema: str | None = None):
        self.type_name = type_name
        self.values = values
        self.schema = schema

    @classmethod
    def create_enum_type(cls, operations: Operations, type_name: str, values: list[str], schema: str | None = None):
        op = CreateEnumTypeOp(type_name, values, schema=schema)
        return operations.invoke(op)

    def reverse(self):
        return DropEnumTypeOp(self.type_name, values=self.values, schema=self.schema)


@Operations.implementation_for(CreateEnumTypeOp)
def create_enum_type(operations: Operations, op: CreateEnumTypeOp):
    name = f'"{op.schema}".{op.type_name}' if op.schema else op.type_name
    values = ", ".join(f"'{v}'" for v in op.values)
    operations.execute(f"CREATE TYPE {name} AS ENUM ({values})")
    return ENUM(*op.values, name=op.type_name, schema=op.schema, create_type=False)


@Operations.register_operation("drop_enum_type")
class DropEnumTypeOp(MigrateOperation):
    def __init__(
        self, type_name: str, values: list[str] | None = None, checkfirst: bool = False, schema: str | None = None
    ):
        self.type_name = type_name
        self.values = values
        self.checkfirst = checkfirst
        self.schema = schema

    @classmethod
    def drop_enum_type(
        cls, operations: Operations, type_name: str, values: list[str] | None = None, schema: str | None = None
    ):
        op = DropEnumTypeOp(type_name, values, schema=schema)
        return operations.invoke(op)

    def reverse(self):
        if self.values is not None:
            return CreateEnumTypeOp(self.type_name, self.values, schema=self.schema)
        raise NotImplementedError("cannot recreate an enum type without its values")


@Operations.implementation_for(DropEnumTypeOp)
def drop_enum_type(operations: Operations, op: DropEnumTypeOp):
    checkfirst = "IF EXISTS " if op.checkfirst else ""
    name = f'"{op.schema}".{op.type_name}' if op.schema else op.type_name
    operations.execute(f"DROP TYPE {checkfirst}{name}")
