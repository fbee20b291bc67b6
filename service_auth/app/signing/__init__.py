"""
Identity token signing.

The callback handler depends only on the ``Signer`` protocol; ``JwtSigner``
is the PyJWT-backed implementation wired in by the service.
"""

from .jwt_signer import JwtSigner, Signer

__all__ = ["JwtSigner", "Signer"]
