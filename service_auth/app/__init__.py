"""
Auth Service package.

This package exposes the FastAPI application that completes a Facebook
login: it receives the provider redirect, exchanges the authorization code,
introspects the resulting access token and issues a signed identity token.

- app.main: Application entrypoint that wires routes and lifecycle.
- app.facebook: Token exchange, introspection and callback orchestration.
- app.signing: Signer protocol and the JWT implementation.

Design notes:
- Keep the package import side-effects minimal; module import must not
  perform network calls. All IO happens in route handlers.
- Use the shared/ utilities for logging, metrics and errors.
- Treat this package as stateless; configuration is read once at startup.
"""
