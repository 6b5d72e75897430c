"""
General API routes for HireFlow tenancy.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..tenancy.context import Tenant, get_tenant

router = APIRouter()
logger = logging.getLogger("hireflow.api")


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}


@router.get("/api/tenant")
async def current_tenant(tenant: Optional[Tenant] = Depends(get_tenant)):
    """Tenant resolved from this request's host, if any."""
    if tenant is None:
        return {"tenant": None}
    return {"tenant": tenant.to_dict()}
