"""
Facebook login callback package.

- models: AccessToken and ClaimSet shapes.
- token_exchanger: authorization code -> access token.
- introspector: access token -> claims, with provider rejection folded into
  ``{"valid": "false"}``.
- callback: per-request orchestration ending in a redirect.
"""

from .callback import CALLBACK_PATH, CallbackHandler, CallbackResult, CallbackState
from .introspector import IdentityIntrospector
from .models import AccessToken, ClaimSet, FACEBOOK_PROVIDER_TAG
from .token_exchanger import TokenExchanger

__all__ = [
    "AccessToken",
    "CALLBACK_PATH",
    "CallbackHandler",
    "CallbackResult",
    "CallbackState",
    "ClaimSet",
    "FACEBOOK_PROVIDER_TAG",
    "IdentityIntrospector",
    "TokenExchanger",
]
