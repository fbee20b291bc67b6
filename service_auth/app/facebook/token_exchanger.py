"""
Authorization code to access token exchange against the Graph token endpoint.
"""

import json
from contextlib import nullcontext
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlencode

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import TransportError
from .models import AccessToken, FACEBOOK_PROVIDER_TAG


class TokenExchanger:
    """Exchanges a single-use authorization code for an access token."""

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        graph_url: str = "https://graph.facebook.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.app_id = app_id
        self.app_secret = app_secret
        self.token_url = f"{graph_url.rstrip('/')}/oauth/access_token"
        self.timeout = timeout
        self.transport = transport
        self.metrics = metrics
        self.logger = get_logger("auth.token_exchanger")

    async def exchange(self, code: str, redirect_uri: str) -> AccessToken:
        """Exchange ``code`` for an access token.

        ``redirect_uri`` must be byte-identical to the URI used to obtain the
        code, otherwise the provider refuses the exchange. Codes are single
        use, so calling this twice with the same code fails the second time.

        Raises:
            TransportError: on connection failure, timeout, non-2xx status or
                a body without a usable ``access_token``.
        """
        params = {
            "client_id": self.app_id,
            "redirect_uri": redirect_uri,
            "client_secret": self.app_secret,
            "code": code,
        }

        try:
            with self._timed():
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    response = await client.get(self.token_url, params=params)
        except httpx.HTTPError as e:
            self.logger.error("Token endpoint unreachable", error=type(e).__name__)
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                "Token endpoint unreachable",
                details={"endpoint": "token", "error": type(e).__name__}
            )

        self.logger.info(
            "Token endpoint responded",
            status_code=response.status_code,
            redirect_uri=redirect_uri
        )

        if not response.is_success:
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                f"Token endpoint returned {response.status_code}",
                details={"endpoint": "token", "status_code": response.status_code}
            )

        return AccessToken.from_query_string(self.to_query_string(response.text))

    @staticmethod
    def to_query_string(body: str) -> str:
        """Rewrite a token response body as ``access_token=...&expires=...``.

        The provider has answered both with JSON (``access_token`` and
        ``expires_in``) and with a URL-encoded body (``access_token`` and
        ``expires``); either form is accepted.
        """
        fields = _parse_token_body(body)

        access_token = fields.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                "Token response missing access_token",
                details={"endpoint": "token"}
            )

        canonical = {"access_token": access_token}
        expires = fields.get("expires_in", fields.get("expires"))
        if expires is not None and expires != "":
            canonical["expires"] = str(expires)

        return urlencode(canonical)

    def _timed(self):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("provider_request_duration_seconds", endpoint="token")


def _parse_token_body(body: str) -> Dict[str, Any]:
    text = body.strip()
    if text.startswith("{"):
        try:
            payload = json.loads(text)
        except ValueError:
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                "Token response is not valid JSON",
                details={"endpoint": "token"}
            )
        if not isinstance(payload, dict):
            raise TransportError(
                FACEBOOK_PROVIDER_TAG,
                "Token response is not a JSON object",
                details={"endpoint": "token"}
            )
        return payload

    return {key: values[0] for key, values in parse_qs(text).items()}
