__all__ = [
    "AuthSettings",
    "EngineSettings",
    "GradeflowWebSettings",
    "LoggingSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "WebSettings",
]


from .engine import EngineSettings
from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .web import AuthSettings, GradeflowWebSettings, WebSettings
