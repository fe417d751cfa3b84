"""Errors raised by the grade lifecycle engine

Every error carries a `kind` (its family, which callers map to a response
class) and a `code` (the specific condition). Both are stable strings.
"""

from __future__ import annotations

import typing as t


class GradeflowError(Exception):
    kind: t.ClassVar[str] = "GradeflowError"
    code: t.ClassVar[str] = "GradeflowError"

    def __init__(self, detail: str, **context: t.Any):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def __init_subclass__(cls, kind: str | None = None, **kwargs: t.Any):
        super().__init_subclass__(**kwargs)
        if kind is not None:
            cls.kind = kind
        cls.code = cls.__name__

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "code": self.code, "detail": self.detail}


class ValidationError(GradeflowError, kind="ValidationError"): ...


class StateError(GradeflowError, kind="StateError"): ...


class NotFoundError(GradeflowError, kind="NotFoundError"): ...


class AuthorizationError(GradeflowError, kind="AuthorizationError"): ...


class ConcurrencyError(GradeflowError, kind="ConcurrencyError"): ...


# fmt: off
class OutOfRange(ValidationError): ...
class UnknownComponentType(ValidationError): ...
class ReasonRequired(ValidationError): ...
class InvalidDecision(ValidationError): ...
class UnchangedValue(ValidationError): ...

class PeriodLocked(StateError): ...
class InvalidTransition(StateError): ...
class ApprovalNotRequired(StateError): ...
class AlreadyDecided(StateError): ...
class StaleApproval(StateError): ...
class SubmissionLocked(StateError): ...

class Forbidden(AuthorizationError): ...
# fmt: on
