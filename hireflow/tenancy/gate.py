"""
Request gate: tenant resolution and auth redirect policy for every request.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..auth.session import SessionVerifier
from .resolver import HostResolver

logger = logging.getLogger("hireflow.tenancy.gate")

DEFAULT_PUBLIC_ROUTES = (
    "/login",
    "/signup",
    "/forgot-password",
    "/set-password",
    "/careers",
    "/api/webhooks",
    "/org/new",
)
DEFAULT_AUTH_CALLBACK_ROUTES = ("/api/auth", "/callback")


@dataclass(frozen=True)
class RedirectPolicy:
    """Where a request goes given its path and whether the caller is signed in."""

    login_path: str = "/login"
    landing_path: str = "/dashboard"
    public_routes: Tuple[str, ...] = DEFAULT_PUBLIC_ROUTES
    auth_callback_routes: Tuple[str, ...] = DEFAULT_AUTH_CALLBACK_ROUTES
    signed_out_only: Tuple[str, ...] = ("/login", "/signup", "/")

    def is_public(self, path: str) -> bool:
        return any(path.startswith(route) for route in self.public_routes)

    def is_auth_callback(self, path: str) -> bool:
        return any(path.startswith(route) for route in self.auth_callback_routes)

    def redirect_for(self, path: str, authenticated: bool) -> Optional[str]:
        """Target path to redirect to, or None to let the request through."""
        if self.is_auth_callback(path):
            return None

        if not authenticated:
            if self.is_public(path) or path == "/":
                return None
            return self.login_path

        if path in self.signed_out_only:
            return self.landing_path
        return None


class RequestGate(BaseHTTPMiddleware):
    """
    Resolves the tenant for the request host, then applies the redirect policy.

    The tenant goes to ``request.state.tenant``; tenant resolution does not
    depend on the caller being signed in.
    """

    def __init__(
        self,
        app,
        resolver: HostResolver,
        session_verifier: SessionVerifier,
        policy: Optional[RedirectPolicy] = None,
        exempt_paths: Sequence[str] = ("/health",),
    ):
        super().__init__(app)
        self.resolver = resolver
        self.session_verifier = session_verifier
        self.policy = policy or RedirectPolicy()
        self.exempt_paths = tuple(exempt_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        host = request.headers.get("host", "")
        tenant = await self.resolver.resolve(host)
        request.state.tenant = tenant

        principal = self.session_verifier.authenticate(request)
        request.state.principal = principal

        path = request.url.path
        if path not in self.exempt_paths:
            target = self.policy.redirect_for(path, principal is not None)
            if target is not None:
                logger.debug(f"Redirecting {path} -> {target}")
                return RedirectResponse(
                    url=str(request.url.replace(path=target)), status_code=307
                )

        response = await call_next(request)
        if tenant is not None:
            response.headers["x-org-id"] = tenant.organization_id
            response.headers["x-tenant-source"] = tenant.source
        return response
