"""
Request-scoped data model for the Facebook login callback.
"""

from typing import Dict, Optional
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict

from shared.errors import TransportError


FACEBOOK_PROVIDER_TAG = "facebook"

# Named string claims; either the full valid shape or exactly {"valid": "false"}
ClaimSet = Dict[str, str]


class AccessToken(BaseModel):
    """Access token returned by the provider's token endpoint."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    expires: Optional[int] = None

    @classmethod
    def from_query_string(cls, query_string: str) -> "AccessToken":
        """Parse the canonical ``access_token=...&expires=...`` form."""
        params = parse_qs(query_string, keep_blank_values=True)

        access_token = params.get("access_token", [""])[0]
        if not access_token.strip():
            raise TransportError(FACEBOOK_PROVIDER_TAG, "Token response missing access_token")

        expires_raw = params.get("expires", [""])[0].strip()
        expires = None
        if expires_raw:
            try:
                expires = int(float(expires_raw))
            except (ValueError, OverflowError):
                raise TransportError(
                    FACEBOOK_PROVIDER_TAG,
                    "Token response has a non-numeric expiry",
                    details={"field": "expires"}
                )

        return cls(access_token=access_token, expires=expires)

    def __repr__(self) -> str:
        return f"AccessToken(access_token='***', expires={self.expires})"

    __str__ = __repr__


def provider_subject(provider_user_id: str) -> str:
    """Prefix a provider user id so ids from different providers cannot collide."""
    return f"{FACEBOOK_PROVIDER_TAG}:{provider_user_id}"


def valid_claims(provider_user_id: str, name: str, email: str) -> ClaimSet:
    """Build the claim set for a token the provider accepted."""
    return {
        "valid": "true",
        "email": email,
        "name": name,
        "id": provider_subject(provider_user_id),
    }


def invalid_claims() -> ClaimSet:
    """Build the claim set for a token the provider rejected."""
    return {"valid": "false"}


def is_valid(claims: ClaimSet) -> bool:
    return claims.get("valid") == "true"
