"""
REST API for platform subdomains.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..auth.session import Principal
from .deps import (
    domain_errors,
    ensure_org_admin,
    ensure_org_member,
    get_current_principal,
)

logger = logging.getLogger("hireflow.api.subdomains")

router = APIRouter(prefix="/api/subdomains", tags=["subdomains"])


class SubdomainRegisterRequest(BaseModel):
    organization_id: str
    subdomain: str


def _with_host(request: Request, entry) -> dict:
    platform_domain = request.app.state.settings.platform_domain
    return {**entry.to_dict(), "host": entry.host(platform_domain)}


@router.get("")
async def list_subdomains(
    request: Request,
    organization_id: str = Query(...),
    principal: Principal = Depends(get_current_principal),
):
    """List an organization's subdomains; any member may read them."""
    ensure_org_member(principal, organization_id)
    registry = request.app.state.domain_registry
    with domain_errors():
        subdomains = await registry.list_subdomains(organization_id)
    return {
        "count": len(subdomains),
        "data": [_with_host(request, s) for s in subdomains],
    }


@router.post("", status_code=201)
async def add_subdomain(
    body: SubdomainRegisterRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Allocate a platform subdomain; it routes immediately."""
    ensure_org_admin(principal, body.organization_id)
    registry = request.app.state.domain_registry
    with domain_errors():
        entry = await registry.add_subdomain(body.organization_id, body.subdomain)
    logger.info(f"Subdomain allocated: {entry.subdomain} for {body.organization_id}")
    return {"data": _with_host(request, entry)}


@router.delete("/{subdomain_id}")
async def delete_subdomain(
    subdomain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    registry = request.app.state.domain_registry
    orchestrator = request.app.state.orchestrator
    with domain_errors():
        entry = await registry.get_subdomain(subdomain_id)
    ensure_org_admin(principal, entry.organization_id)
    with domain_errors():
        await orchestrator.remove_subdomain(subdomain_id)
    logger.info(f"Subdomain released: {entry.subdomain}")
    return {"success": True, "subdomain": entry.subdomain}
