"""
REST API for custom domain management.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..auth.session import Principal
from ..domains.models import CustomDomain
from .deps import domain_errors, ensure_org_admin, get_current_principal

logger = logging.getLogger("hireflow.api.domains")

router = APIRouter(prefix="/api/domains", tags=["domains"])


# ── Request / Response models ────────────────────────────────────────

class DomainRegisterRequest(BaseModel):
    organization_id: str
    domain: str


def _with_instructions(request: Request, entry: CustomDomain) -> dict:
    registry = request.app.state.domain_registry
    instructions = registry.get_dns_instructions(
        entry.domain, entry.verification_token
    )
    return {**entry.to_api_response(), "dns_instructions": instructions.to_dict()}


async def _load_owned_domain(
    request: Request, domain_id: str, principal: Principal
) -> CustomDomain:
    registry = request.app.state.domain_registry
    with domain_errors():
        entry = await registry.get_domain(domain_id)
    ensure_org_admin(principal, entry.organization_id)
    return entry


# ── Routes ───────────────────────────────────────────────────────────

@router.get("")
async def list_domains(
    request: Request,
    organization_id: str = Query(...),
    principal: Principal = Depends(get_current_principal),
):
    """List an organization's custom domains with their DNS instructions."""
    ensure_org_admin(principal, organization_id)
    registry = request.app.state.domain_registry
    with domain_errors():
        domains = await registry.list_domains(organization_id)
    return {
        "count": len(domains),
        "data": [_with_instructions(request, d) for d in domains],
    }


@router.post("", status_code=201)
async def add_domain(
    body: DomainRegisterRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Register a new custom domain (status pending)."""
    ensure_org_admin(principal, body.organization_id)
    registry = request.app.state.domain_registry
    with domain_errors():
        entry = await registry.add_domain(body.organization_id, body.domain)
    logger.info(f"Domain registered: {entry.domain} for {body.organization_id}")
    return {"data": _with_instructions(request, entry)}


@router.get("/{domain_id}/dns")
async def get_dns_instructions(
    domain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """DNS records the admin must publish for this domain."""
    entry = await _load_owned_domain(request, domain_id, principal)
    registry = request.app.state.domain_registry
    instructions = registry.get_dns_instructions(
        entry.domain, entry.verification_token
    )
    return {"domain": entry.domain, **instructions.to_dict()}


@router.post("/{domain_id}/attach")
async def attach_domain(
    domain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Attach the domain to the application at the provider."""
    await _load_owned_domain(request, domain_id, principal)
    orchestrator = request.app.state.orchestrator
    with domain_errors():
        entry = await orchestrator.attach(domain_id)
    return {"data": entry.to_api_response()}


@router.post("/{domain_id}/verify")
async def verify_domain(
    domain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Trigger DNS verification for a domain."""
    await _load_owned_domain(request, domain_id, principal)
    orchestrator = request.app.state.orchestrator
    with domain_errors():
        result = await orchestrator.verify(domain_id)
    return result.to_dict()


@router.get("/{domain_id}/config")
async def get_domain_config(
    domain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Provider's view of the domain's DNS configuration."""
    await _load_owned_domain(request, domain_id, principal)
    orchestrator = request.app.state.orchestrator
    with domain_errors():
        return await orchestrator.domain_config(domain_id)


@router.delete("/{domain_id}")
async def delete_domain(
    domain_id: str,
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """Detach at the provider, then delete the domain."""
    await _load_owned_domain(request, domain_id, principal)
    orchestrator = request.app.state.orchestrator
    with domain_errors():
        entry = await orchestrator.remove_domain(domain_id)
    logger.info(f"Domain removed: {entry.domain}")
    return {"success": True, "domain": entry.domain}
