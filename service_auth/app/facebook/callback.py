"""
Orchestration of one inbound Facebook login redirect.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from shared.logging import get_logger, set_user_context
from shared.metrics import MetricsCollector
from shared.errors import TransportError
from ..signing import Signer
from .introspector import IdentityIntrospector
from .models import is_valid
from .token_exchanger import TokenExchanger


CALLBACK_PATH = "/FacebookCallback"


class CallbackState(str, Enum):
    """Progress of a single callback request."""
    START = "start"
    EXCHANGED = "exchanged"
    INTROSPECTED = "introspected"
    SIGNED = "signed"
    REJECTED = "rejected"


class CallbackResult(BaseModel):
    """Terminal outcome of a callback; both outcomes end in a redirect."""
    state: CallbackState
    redirect_url: str


class CallbackHandler:
    """Drives exchange, introspection and the sign-or-reject decision."""

    def __init__(
        self,
        exchanger: TokenExchanger,
        introspector: IdentityIntrospector,
        signer: Signer,
        auth_url: str,
        success_url: str,
        failure_url: str,
        metrics: Optional[MetricsCollector] = None
    ):
        self.exchanger = exchanger
        self.introspector = introspector
        self.signer = signer
        self.auth_url = auth_url
        self.success_url = success_url
        self.failure_url = failure_url
        self.metrics = metrics
        self.logger = get_logger("auth.callback")

    @property
    def redirect_uri(self) -> str:
        """Redirect URI registered for the flow; must match the authorize step exactly."""
        return self.auth_url + CALLBACK_PATH

    async def handle(self, code: str) -> CallbackResult:
        """Resolve an authorization code into a success or failure redirect.

        TransportError from either provider call propagates unchanged; it is
        not turned into a failure redirect.
        """
        state = CallbackState.START
        redirect_uri = self.redirect_uri
        self.logger.debug("Facebook token URL", redirect_uri=redirect_uri)

        try:
            token = await self.exchanger.exchange(code, redirect_uri)
            state = CallbackState.EXCHANGED

            claims = await self.introspector.introspect(token.access_token)
            state = CallbackState.INTROSPECTED
        except TransportError as e:
            self.logger.error("Login callback failed", state=state.value, code=e.code, message=e.message)
            self._count("error")
            raise

        if not is_valid(claims):
            self._count(CallbackState.REJECTED.value)
            return CallbackResult(state=CallbackState.REJECTED, redirect_url=self.failure_url)

        signed_token = self.signer.sign(claims)

        set_user_context(claims["id"])
        self.logger.info("New user authenticated", subject=claims["id"])
        self._count(CallbackState.SIGNED.value)

        return CallbackResult(
            state=CallbackState.SIGNED,
            redirect_url=f"{self.success_url}/{signed_token}"
        )

    def _count(self, outcome: str):
        if self.metrics is not None:
            self.metrics.increment_counter("auth_callbacks_total", outcome=outcome)
