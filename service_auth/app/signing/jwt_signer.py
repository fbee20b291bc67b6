"""
JWT signing of resolved identity claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Mapping, Protocol

import jwt

from shared.logging import get_logger


class Signer(Protocol):
    """Anything that turns a claim set into an opaque signed token."""

    def sign(self, claims: Mapping[str, str]) -> str:
        ...


class JwtSigner:
    """Signs identity claims into a JWT with PyJWT."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: str = "client",
        expires_in: int = 86400
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience
        self.expires_in = expires_in
        self.logger = get_logger("auth.signer")

    def sign(self, claims: Mapping[str, str]) -> str:
        """Sign a valid claim set; ``id`` becomes the JWT subject."""
        if claims.get("valid") != "true":
            raise ValueError("Refusing to sign an invalid claim set")

        now = datetime.now(timezone.utc)
        payload = {
            "sub": claims["id"],
            "id": claims["id"],
            "name": claims.get("name", ""),
            "email": claims.get("email", ""),
            "aud": self.audience,
            "iat": now,
            "exp": now + timedelta(seconds=self.expires_in)
        }

        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        self.logger.debug("Identity token signed", sub=claims["id"], algorithm=self.algorithm)
        return token
