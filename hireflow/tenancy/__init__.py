"""Tenant resolution for inbound requests."""

from .context import SOURCE_CUSTOM_DOMAIN, SOURCE_SUBDOMAIN, Tenant, get_tenant
from .gate import RedirectPolicy, RequestGate
from .resolver import HostResolver

__all__ = [
    "SOURCE_CUSTOM_DOMAIN",
    "SOURCE_SUBDOMAIN",
    "Tenant",
    "get_tenant",
    "HostResolver",
    "RedirectPolicy",
    "RequestGate",
]
