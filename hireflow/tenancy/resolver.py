"""
Host -> tenant resolution.

Resolution runs an ordered list of strategies; the first strategy that
reaches a decision wins:

    platformExact -> subdomain -> customDomain -> wwwFallback

A strategy returns ``None`` to pass, or a ``Decision`` wrapping either a
tenant or "no tenant". Only active subdomains and verified custom domains
ever produce a tenant.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..domains.registry import DomainRegistry
from ..domains.validation import normalize_host
from .context import SOURCE_CUSTOM_DOMAIN, SOURCE_SUBDOMAIN, Tenant

logger = logging.getLogger("hireflow.tenancy.resolver")


@dataclass(frozen=True)
class Decision:
    """Final answer of a strategy; ``tenant`` is None for "no tenant"."""

    tenant: Optional[Tenant] = None


NO_TENANT = Decision()


class ResolutionStrategy:
    """One step of host resolution."""

    name = "strategy"

    async def __call__(self, host: str) -> Optional[Decision]:
        raise NotImplementedError


class PlatformExactStrategy(ResolutionStrategy):
    """The platform's own hosts are never tenant scoped."""

    name = "platformExact"

    def __init__(self, platform_domain: str):
        self.hosts = {
            platform_domain,
            f"www.{platform_domain}",
            "localhost",
        }

    async def __call__(self, host: str) -> Optional[Decision]:
        if host in self.hosts:
            return NO_TENANT
        return None


class SubdomainStrategy(ResolutionStrategy):
    """``<label>.<platform>`` -> active subdomain; nested labels never match."""

    name = "subdomain"

    def __init__(self, registry: DomainRegistry, platform_domain: str):
        self.registry = registry
        self.suffix = f".{platform_domain}"

    async def __call__(self, host: str) -> Optional[Decision]:
        if not host.endswith(self.suffix):
            return None

        label = host[: -len(self.suffix)]
        if not label or "." in label:
            return NO_TENANT

        entry = await self.registry.find_active_subdomain(label)
        if entry is None:
            return NO_TENANT
        return Decision(Tenant(entry.organization_id, SOURCE_SUBDOMAIN))


class CustomDomainStrategy(ResolutionStrategy):
    """Exact match on a verified custom domain."""

    name = "customDomain"

    def __init__(self, registry: DomainRegistry):
        self.registry = registry

    async def __call__(self, host: str) -> Optional[Decision]:
        entry = await self.registry.find_verified_domain(host)
        if entry is None:
            return None
        return Decision(Tenant(entry.organization_id, SOURCE_CUSTOM_DOMAIN))


class WwwFallbackStrategy(ResolutionStrategy):
    """``www.<domain>`` -> verified custom domain ``<domain>``."""

    name = "wwwFallback"

    def __init__(self, registry: DomainRegistry):
        self.registry = registry

    async def __call__(self, host: str) -> Optional[Decision]:
        if not host.startswith("www."):
            return NO_TENANT

        entry = await self.registry.find_verified_domain(host[len("www."):])
        if entry is None:
            return NO_TENANT
        return Decision(Tenant(entry.organization_id, SOURCE_CUSTOM_DOMAIN))


class HostResolver:
    """
    Maps a request host to a tenant.

    Holds no per-request state; every call re-resolves from the registry.
    Registry failures resolve to None so a store outage never misroutes.
    """

    def __init__(
        self,
        registry: DomainRegistry,
        platform_domain: str = "hireflow.com",
        strategies: Optional[Sequence[ResolutionStrategy]] = None,
    ):
        self.platform_domain = platform_domain.lower().rstrip(".")
        if strategies is None:
            strategies = [
                PlatformExactStrategy(self.platform_domain),
                SubdomainStrategy(registry, self.platform_domain),
                CustomDomainStrategy(registry),
                WwwFallbackStrategy(registry),
            ]
        self.strategies: List[ResolutionStrategy] = list(strategies)

    @property
    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]

    async def resolve(self, host: Optional[str]) -> Optional[Tenant]:
        """Return the tenant for host, or None."""
        if not host:
            return None

        normalized = normalize_host(host)
        if not normalized:
            return None

        try:
            for strategy in self.strategies:
                decision = await strategy(normalized)
                if decision is not None:
                    return decision.tenant
        except Exception as e:
            # Fail closed: a lookup error is "no tenant", never a 500
            logger.warning(f"Tenant resolution failed for {normalized}: {e}")
            return None

        return None
