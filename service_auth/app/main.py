"""
Auth service: Facebook login callback.
"""

from typing import Optional

import httpx
from fastapi import Query
from fastapi.responses import RedirectResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ConfigurationError
from .facebook import CALLBACK_PATH, CallbackHandler, IdentityIntrospector, TokenExchanger
from .signing import JwtSigner


REQUIRED_SETTINGS = (
    "facebook_app_id",
    "facebook_secret",
    "auth_callback_url_success",
    "auth_callback_url_failure",
    "auth_url",
    "jwt_secret",
)


class AuthService(BaseService):
    """Auth service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__("auth", 8010, config=config)
        self._verify_config()

        self.token_exchanger = TokenExchanger(
            app_id=self.config.facebook_app_id,
            app_secret=self.config.facebook_secret,
            graph_url=self.config.facebook_graph_url,
            timeout=self.config.provider_timeout_seconds,
            transport=transport,
            metrics=self.metrics
        )
        self.introspector = IdentityIntrospector(
            graph_url=self.config.facebook_graph_url,
            graph_version=self.config.facebook_graph_version,
            app_secret=self.config.facebook_secret if self.config.facebook_appsecret_proof else None,
            timeout=self.config.provider_timeout_seconds,
            transport=transport,
            metrics=self.metrics
        )
        self.signer = JwtSigner(
            secret=self.config.jwt_secret,
            algorithm=self.config.jwt_algorithm,
            audience=self.config.jwt_audience,
            expires_in=self.config.jwt_expiration_seconds
        )
        self.callback_handler = CallbackHandler(
            exchanger=self.token_exchanger,
            introspector=self.introspector,
            signer=self.signer,
            auth_url=self.config.auth_url,
            success_url=self.config.auth_callback_url_success,
            failure_url=self.config.auth_callback_url_failure,
            metrics=self.metrics
        )

        self._setup_auth_routes()

    def _verify_config(self):
        """Refuse to start without provider credentials and redirect targets."""
        try:
            self.config.require(*REQUIRED_SETTINGS)
        except ConfigurationError as e:
            self.logger.error(
                "Auth service misconfigured; refusing to accept traffic",
                missing=e.details.get("missing"),
                env_vars=e.details.get("env_vars")
            )
            raise

    def _setup_auth_routes(self):
        """Set up auth-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "auth",
                "message": "Facebook login callback service",
                "version": "1.0.0"
            }

        @self.app.get(CALLBACK_PATH)
        async def facebook_callback(code: str = Query(..., min_length=1)):
            """Redirect target for Facebook after the user granted consent."""
            result = await self.callback_handler.handle(code)
            return RedirectResponse(result.redirect_url, status_code=302)

    async def _check_dependencies(self):
        """Report provider configuration; no network call is made."""
        return {
            "facebook": "configured" if not self.config.missing(*REQUIRED_SETTINGS) else "missing",
            "graph_url": self.config.facebook_graph_url
        }


def create_app(
    config: Optional[ServiceConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
):
    """Create FastAPI application."""
    service = AuthService(config=config, transport=transport)
    return service.app


if __name__ == "__main__":
    service = AuthService()
    service.run()
