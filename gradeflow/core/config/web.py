from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class WebSettings(BaseSettings):
    gradeflow: GradeflowWebSettings


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)]


class AuthSettings(BaseSettings):
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30


class GradeflowWebSettings(BaseSettings):
    backend: ServeSettings
    auth: AuthSettings = AuthSettings()
