"""Bearer token minting and validation"""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import jwt
import pydantic as p

from gradeflow.model import Actor, Role


class TokenPayload(t.TypedDict):
    sub: str  # user_id
    role: str
    exp: int
    iat: int


class TokenData(t.NamedTuple):
    actor: Actor
    expires_at: datetime.datetime
    issued_at: datetime.datetime


class JWTManager(object):
    _secret_key: p.Secret[str]
    _algorithm: str
    _access_token_expire_minutes: int

    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: str = "HS256",
        access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 30,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._access_token_expire_minutes = access_token_expire_minutes

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def create_access_token(self, actor: Actor, expires_delta: datetime.timedelta | None = None) -> str:
        """Create a signed token asserting `actor`

        Args:
            actor: the user and role the bearer acts as
            expires_delta: custom lifetime (default: access_token_expire_minutes)
        """
        now = datetime.datetime.now(datetime.UTC)
        if expires_delta is None:
            expires_delta = datetime.timedelta(minutes=self._access_token_expire_minutes)

        payload: TokenPayload = {
            "sub": actor.user_id,
            "role": actor.role.value,
            "exp": int((now + expires_delta).timestamp()),
            "iat": int(now.timestamp()),
        }
        return jwt.encode(dict(payload), self.secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenData | None:
        """Decode and validate a token, returning None if it is invalid or expired"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self._algorithm], options={"require": ["sub"]})
            actor = Actor(user_id=payload["sub"], role=Role(payload["role"]))
            return TokenData(
                actor=actor,
                expires_at=datetime.datetime.fromtimestamp(payload["exp"], tz=datetime.UTC),
                issued_at=datetime.datetime.fromtimestamp(payload["iat"], tz=datetime.UTC),
            )
        except jwt.InvalidTokenError:
            return None
        except (KeyError, ValueError):
            # signed by us but missing or carrying an unknown role
            return None
