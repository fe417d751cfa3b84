import typing as t

import annotated_types as ant

from .base import BaseSettings


class RetrySettings(BaseSettings):
    attempts: t.Annotated[int, ant.Ge(1)] = 3


class EngineSettings(BaseSettings):
    retry: RetrySettings = RetrySettings()
