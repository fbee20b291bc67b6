"""
Access token introspection against the Graph ``me`` endpoint.
"""

import hashlib
import hmac
from contextlib import nullcontext
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import ProviderRejection, TransportError
from .models import ClaimSet, FACEBOOK_PROVIDER_TAG, invalid_claims, valid_claims


# Graph error codes meaning the token itself is unusable
OAUTH_ERROR_CODES = {102, 190}
OAUTH_ERROR_TYPE = "OAuthException"
REQUESTED_FIELDS = "email,name"


class IdentityIntrospector:
    """Resolves an access token into a normalized claim set."""

    def __init__(
        self,
        graph_url: str = "https://graph.facebook.com",
        graph_version: Optional[str] = None,
        app_secret: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        base = graph_url.rstrip("/")
        if graph_version:
            base = f"{base}/{graph_version.strip('/')}"
        self.me_url = f"{base}/me"
        # When set, every call carries an appsecret_proof
        self.app_secret = app_secret
        self.timeout = timeout
        self.transport = transport
        self.metrics = metrics
        self.logger = get_logger("auth.introspector")

    async def introspect(self, access_token: str) -> ClaimSet:
        """Fetch ``id``, ``name`` and ``email`` for ``access_token``.

        A token the provider refuses yields exactly ``{"valid": "false"}``.
        Transport and parsing failures are raised as TransportError so they
        stay distinguishable from a user who simply is not valid.
        """
        try:
            user = await self._fetch_me(access_token)
        except ProviderRejection as e:
            self.logger.info("Access token rejected by provider", reason=e.details.get("type"))
            return invalid_claims()

        if not user["name"] or not user["email"]:
            self.logger.warning(
                "Identity response missing requested fields",
                has_name=bool(user["name"]),
                has_email=bool(user["email"])
            )

        return valid_claims(user["id"], user["name"], user["email"])

    def appsecret_proof(self, access_token: str) -> str:
        """HMAC-SHA256 of the access token keyed by the app secret."""
        return hmac.new(
            self.app_secret.encode("utf-8"),
            access_token.encode("utf-8"),
            hashlib.sha256
        ).hexdigest()

    async def _fetch_me(self, access_token: str) -> Dict[str, str]:
        params = {"fields": REQUESTED_FIELDS}
        if self.app_secret:
            params["appsecret_proof"] = self.appsecret_proof(access_token)

        try:
            with self._timed():
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.get(
                        self.me_url,
                        params=params,
                        headers={"Authorization": f"Bearer {access_token}"}
                    )
        except httpx.HTTPError as e:
            self.logger.error("Identity endpoint unreachable", error=type(e).__name__)
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                "Identity endpoint unreachable",
                details={"endpoint": "me", "error": type(e).__name__}
            )

        if response.is_success:
            body = _json_object(response)
            if body is None:
                raise TransportError(
                    FACEBOOK_PROVIDER_TAG,
                    "Identity response is not a JSON object",
                    details={"endpoint": "me", "status_code": response.status_code}
                )
            return _user_fields(body, response.status_code)

        error = _graph_error(response)
        if error is not None and _is_oauth_error(error):
            raise ProviderRejection(
                details={
                    "status_code": response.status_code,
                    "type": error.get("type"),
                    "code": error.get("code")
                }
            )

        raise TransportError(
            FACEBOOK_PROVIDER_TAG,
            f"Identity endpoint returned {response.status_code}",
            details={"endpoint": "me", "status_code": response.status_code}
        )

    def _timed(self):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("provider_request_duration_seconds", endpoint="me")


def _user_fields(body: Dict[str, Any], status_code: int) -> Dict[str, str]:
    """Pull ``id``, ``name`` and ``email`` out of a ``me`` body as strings."""
    provider_user_id = body.get("id")
    # bool is an int subclass but never a Graph id
    if isinstance(provider_user_id, int) and not isinstance(provider_user_id, bool):
        provider_user_id = str(provider_user_id)
    if not isinstance(provider_user_id, str) or not provider_user_id:
        raise TransportError(
            FACEBOOK_PROVIDER_TAG,
            "Identity response has no usable id",
            details={"endpoint": "me", "status_code": status_code}
        )

    fields = {"id": provider_user_id}
    for name in ("name", "email"):
        value = body.get(name)
        if value is not None and not isinstance(value, str):
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                f"Identity response field {name} is not a string",
                details={"endpoint": "me", "status_code": status_code, "field": name}
            )
        fields[name] = value or ""
    return fields


def _json_object(response: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _graph_error(response: httpx.Response) -> Optional[Dict[str, Any]]:
    body = _json_object(response)
    if body is None:
        return None
    error = body.get("error")
    return error if isinstance(error, dict) else None


def _is_oauth_error(error: Dict[str, Any]) -> bool:
    code = error.get("code")
    return error.get("type") == OAUTH_ERROR_TYPE or (isinstance(code, int) and code in OAUTH_ERROR_CODES)
