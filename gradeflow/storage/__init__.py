import importlib
import sys
import types
import typing as t

from sqlalchemy.orm import Session, SessionTransaction

__all__ = [
    "LockMode",
    "Session",
    "SessionTransaction",
    # Repository modules
    "approval",
    "audit",
    "grade",
    "period",
    "submission",
]

# "update" takes an exclusive row lock, "share" a shared one
LockMode = t.Literal["update", "share"]

if t.TYPE_CHECKING:
    from . import approval, audit, grade, period, submission


def __getattr__(name: str) -> types.ModuleType:
    if name in __all__:
        module = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
