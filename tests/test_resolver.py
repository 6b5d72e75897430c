"""
Tests for host -> tenant resolution.
"""

from unittest.mock import AsyncMock

import pytest

from hireflow.domains.models import ATTACHED, FAILED, VERIFIED
from hireflow.errors import RegistryError
from hireflow.tenancy.context import SOURCE_CUSTOM_DOMAIN, SOURCE_SUBDOMAIN, Tenant
from hireflow.tenancy.resolver import HostResolver


async def _verified(registry, org, domain):
    entry = await registry.add_domain(org, domain)
    return await registry.set_domain_status(entry.id, VERIFIED)


class TestPlatformHosts:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("host", [
        "hireflow.com",
        "www.hireflow.com",
        "localhost",
        "HIREFLOW.COM:443",
        "www.HireFlow.com:8080",
        "localhost:3000",
    ])
    async def test_platform_hosts_never_resolve(self, resolver, host):
        assert await resolver.resolve(host) is None

    @pytest.mark.asyncio
    async def test_empty_host(self, resolver):
        assert await resolver.resolve("") is None
        assert await resolver.resolve(None) is None

    def test_strategy_order(self, resolver):
        assert resolver.strategy_names == [
            "platformExact",
            "subdomain",
            "customDomain",
            "wwwFallback",
        ]


class TestSubdomainResolution:
    @pytest.mark.asyncio
    async def test_active_subdomain(self, registry, resolver):
        await registry.add_subdomain("org-acme", "acme")

        tenant = await resolver.resolve("acme.hireflow.com")
        assert tenant == Tenant("org-acme", SOURCE_SUBDOMAIN)

        tenant = await resolver.resolve("ACME.HireFlow.com:3000")
        assert tenant == Tenant("org-acme", SOURCE_SUBDOMAIN)

    @pytest.mark.asyncio
    async def test_nested_subdomain_never_resolves(self, registry, resolver):
        await registry.add_subdomain("org-acme", "acme")
        assert await resolver.resolve("jobs.acme.hireflow.com") is None
        assert await resolver.resolve("www.acme.hireflow.com") is None

    @pytest.mark.asyncio
    async def test_unknown_subdomain(self, resolver):
        assert await resolver.resolve("nobody.hireflow.com") is None

    @pytest.mark.asyncio
    async def test_platform_subdomain_skips_custom_domains(self, registry, resolver):
        # Platform hosts are decided by the subdomain strategy alone
        registry.find_verified_domain = AsyncMock()
        assert await resolver.resolve("nobody.hireflow.com") is None
        registry.find_verified_domain.assert_not_called()


class TestCustomDomainResolution:
    @pytest.mark.asyncio
    async def test_verified_domain(self, registry, resolver):
        await _verified(registry, "org-acme", "careers.acme.io")
        tenant = await resolver.resolve("Careers.Acme.io:443")
        assert tenant == Tenant("org-acme", SOURCE_CUSTOM_DOMAIN)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [None, ATTACHED, FAILED])
    async def test_unverified_domain_never_routes(self, registry, resolver, status):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        if status:
            await registry.set_domain_status(entry.id, status)
        assert await resolver.resolve("careers.acme.io") is None
        assert await resolver.resolve("www.careers.acme.io") is None

    @pytest.mark.asyncio
    async def test_www_fallback(self, registry, resolver):
        await _verified(registry, "org-acme", "acme.io")
        tenant = await resolver.resolve("www.acme.io")
        assert tenant == Tenant("org-acme", SOURCE_CUSTOM_DOMAIN)

    @pytest.mark.asyncio
    async def test_registered_www_host_wins_over_fallback(self, registry, resolver):
        await _verified(registry, "org-acme", "acme.io")
        await _verified(registry, "org-globex", "www.acme.io")

        tenant = await resolver.resolve("www.acme.io")
        assert tenant == Tenant("org-globex", SOURCE_CUSTOM_DOMAIN)

    @pytest.mark.asyncio
    async def test_unknown_host(self, resolver):
        assert await resolver.resolve("jobs.unknown.org") is None


class TestFailClosed:
    @pytest.mark.asyncio
    async def test_registry_error_resolves_to_none(self, registry, resolver):
        registry.find_verified_domain = AsyncMock(
            side_effect=RegistryError("Redis unavailable")
        )
        assert await resolver.resolve("careers.acme.io") is None

    @pytest.mark.asyncio
    async def test_subdomain_lookup_error_resolves_to_none(self, registry, resolver):
        registry.find_active_subdomain = AsyncMock(side_effect=ConnectionError("down"))
        assert await resolver.resolve("acme.hireflow.com") is None

    @pytest.mark.asyncio
    async def test_custom_strategies(self, registry):
        class Always:
            name = "always"

            async def __call__(self, host):
                from hireflow.tenancy.resolver import Decision
                return Decision(Tenant("org-any", SOURCE_CUSTOM_DOMAIN))

        resolver = HostResolver(registry, strategies=[Always()])
        assert resolver.strategy_names == ["always"]
        assert (await resolver.resolve("x.io")).organization_id == "org-any"
