"""
Caller Identity

The service does not authenticate anyone itself. An identity resolver
attached to the app as ``app.identity_resolver`` maps the current request
to an opaque owner id, or None for anonymous callers.
"""

from typing import Callable, Optional

from flask import Request, current_app, request

IdentityResolver = Callable[[Request], Optional[str]]


def header_identity_resolver(header_name: str = "X-User-Id") -> IdentityResolver:
    """
    Build a resolver that trusts a header set by an authenticating proxy.

    Args:
        header_name: Request header carrying the caller identity

    Returns:
        Resolver returning the stripped header value, or None when blank
    """

    def resolve(req: Request) -> Optional[str]:
        value = req.headers.get(header_name, "").strip()
        return value or None

    return resolve


def current_identity() -> Optional[str]:
    """Identity of the caller of the current request, or None."""
    resolver = getattr(current_app, "identity_resolver", None)
    if resolver is None:
        return None
    return resolver(request)
