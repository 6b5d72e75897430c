"""
Caller identity from the platform session token.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import jwt
from starlette.requests import HTTPConnection

logger = logging.getLogger("hireflow.auth.session")

ADMIN_ROLE = "admin"


@dataclass
class Principal:
    """An authenticated caller and the roles it holds per organization."""

    user_id: str
    email: Optional[str] = None
    org_roles: Dict[str, str] = field(default_factory=dict)

    def role_in(self, organization_id: str) -> Optional[str]:
        return self.org_roles.get(organization_id)

    def is_member(self, organization_id: str) -> bool:
        return organization_id in self.org_roles

    def is_admin(self, organization_id: str) -> bool:
        return self.org_roles.get(organization_id) == ADMIN_ROLE


class SessionVerifier:
    """
    Verifies session JWTs issued by the authentication service.

    The token is read from the ``Authorization: Bearer`` header or from the
    session cookie. Any invalid token is treated as "no session".
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = "authenticated",
        cookie_name: str = "hireflow-access-token",
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience or None
        self.cookie_name = cookie_name

    def verify(self, token: str) -> Dict:
        """
        Verify token and return claims.

        Raises:
            ValueError: If verification fails
        """
        if not self.secret:
            raise ValueError("Session secret is not configured")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ValueError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid token: {e}") from e
        return claims

    def _extract_token(self, conn: HTTPConnection) -> Optional[str]:
        auth = conn.headers.get("authorization", "")
        scheme, _, credentials = auth.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
        return conn.cookies.get(self.cookie_name)

    def principal_from_claims(self, claims: Dict) -> Principal:
        roles = claims.get("org_roles")
        if not isinstance(roles, dict):
            roles = {}
        return Principal(
            user_id=str(claims["sub"]),
            email=claims.get("email"),
            org_roles={str(k): str(v) for k, v in roles.items()},
        )

    def authenticate(self, conn: HTTPConnection) -> Optional[Principal]:
        """Return the caller of this request, or None when unauthenticated."""
        token = self._extract_token(conn)
        if not token:
            return None
        try:
            claims = self.verify(token)
        except ValueError as e:
            logger.debug(f"Session rejected: {e}")
            return None
        return self.principal_from_claims(claims)
