__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "GradeflowContainer",
    "StorageContainer",
]

from .auth import AuthContainer
from .gradeflow import BootConfiguration, GradeflowContainer
from .storage import StorageContainer
