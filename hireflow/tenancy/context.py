"""
Request-scoped tenant context.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

SOURCE_SUBDOMAIN = "subdomain"
SOURCE_CUSTOM_DOMAIN = "customDomain"


@dataclass(frozen=True)
class Tenant:
    """Organization resolved from the request host."""

    organization_id: str
    source: str

    def to_dict(self) -> dict:
        return {"organization_id": self.organization_id, "source": self.source}


def get_tenant(request: Request) -> Optional[Tenant]:
    """FastAPI dependency: tenant attached by the request gate, if any."""
    return getattr(request.state, "tenant", None)
