from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KEY_LENGTH: t.Final[int] = 22


class ShortUUIDKey(str):
    """A prefixed short UUID, e.g. `grad$4sZ9...`

    Subclasses declare their four-character prefix as a class keyword.
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str]

    @classmethod
    def validate_str(cls, v: ShortUUIDKey | str | None, _: p.ValidationInfo) -> ShortUUIDKey | None:
        return cls(v) if v is not None else v

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {
            "type": "string",
            "pattern": f"^{cls.prefix}\\{cls.separator}[0-9A-Za-z]{{{KEY_LENGTH}}}$",
        }

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from_str_schema = core_schema.chain_schema([
            core_schema.str_schema(),
            core_schema.with_info_after_validator_function(cls.validate_str, schema=core_schema.str_schema()),
        ])
        return core_schema.json_or_python_schema(
            json_schema=from_str_schema,
            python_schema=core_schema.union_schema([
                core_schema.is_instance_schema(cls),
                from_str_schema,
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(cls.__str__),
        )

    @p.validate_call
    def __init_subclass__(cls, prefix: t.Annotated[str, ant.Len(4)], separator: t.Annotated[str, ant.Len(1)] = "$"):
        super().__init_subclass__()
        cls.prefix = prefix
        cls.separator = separator

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        """
        `s` is a complete prefixed key and is validated; `key` is the bare
        short UUID and is trusted. With neither, a fresh key is generated.
        """
        if key is None:
            if s is not None:
                head = cls.prefix + cls.separator
                if not s.startswith(head):
                    raise ValueError(f"invalid {cls.__name__}: key must begin with {head}")
                if len(s) != KEY_LENGTH + len(head):
                    raise ValueError(f"invalid {cls.__name__}: key must have length {KEY_LENGTH}")
                alphabet = shortuuid.get_alphabet()
                if any((c not in alphabet) for c in s[len(head):]):
                    raise ValueError(f"invalid {cls.__name__}: key must comprise only {alphabet}")
                return super().__new__(cls, s)
            key = shortuuid.uuid()
        return super().__new__(cls, cls.separator.join((cls.prefix, key)))

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator):]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key!s}>"


# fmt: off
class PeriodID(ShortUUIDKey, prefix="perd"): ...
class GradeID(ShortUUIDKey, prefix="grad"): ...
class SubmissionID(ShortUUIDKey, prefix="subm"): ...
class ApprovalID(ShortUUIDKey, prefix="appr"): ...
class AuditEntryID(ShortUUIDKey, prefix="audt"): ...
# fmt: on

# identifiers owned by collaborating systems; opaque to the engine
ExternalID = t.Annotated[str, p.StringConstraints(strip_whitespace=True, min_length=1)]
StudentID = ExternalID
ClassID = ExternalID
SubjectID = ExternalID
AcademicYearID = ExternalID
SemesterID = ExternalID
UserID = ExternalID
