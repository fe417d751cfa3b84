"""The grade lifecycle engine

Operations run inside the caller's transaction; wrap calls at the boundary
with `transaction.atomically`.
"""

__all__ = [
    "approval",
    "atomically",
    "audit",
    "errors",
    "grade",
    "period",
    "submission",
]

from . import approval, audit, errors, grade, period, submission
from .transaction import atomically
