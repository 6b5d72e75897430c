"""
Shared dependencies for the admin API.
"""

from contextlib import contextmanager

from fastapi import HTTPException, Request

from ..auth.session import Principal
from ..errors import (
    DuplicateDomain,
    NotFound,
    ProviderError,
    RegistryError,
    ValidationError,
)


# ── Auth dependency ──────────────────────────────────────────────────

async def get_current_principal(request: Request) -> Principal:
    """Caller of this request, as identified by the request gate."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        principal = request.app.state.session_verifier.authenticate(request)
    if principal is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return principal


def ensure_org_admin(principal: Principal, organization_id: str) -> None:
    if not principal.is_admin(organization_id):
        raise HTTPException(status_code=403, detail="Admin access required")


def ensure_org_member(principal: Principal, organization_id: str) -> None:
    if not principal.is_member(organization_id):
        raise HTTPException(
            status_code=403, detail="Not a member of this organization"
        )


# ── Error mapping ────────────────────────────────────────────────────

@contextmanager
def domain_errors():
    """Translate registry/provider errors into HTTP responses."""
    try:
        yield
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateDomain as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except RegistryError as e:
        raise HTTPException(status_code=503, detail=str(e))
