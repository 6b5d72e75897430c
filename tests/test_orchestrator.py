"""
Tests for the custom domain lifecycle.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import dns.exception
import pytest

from hireflow.domains.dns import OwnershipVerifier
from hireflow.domains.models import ATTACHED, FAILED, PENDING, VERIFIED
from hireflow.domains.orchestrator import VerificationOrchestrator
from hireflow.errors import NotFound, ProviderError
from hireflow.tenancy.context import SOURCE_CUSTOM_DOMAIN, Tenant


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_acme_scenario(self, registry, provider, orchestrator, resolver):
        entry = await registry.add_domain("acme_id", "careers.acme.io")
        assert entry.status == PENDING
        assert entry.verification_token
        assert await resolver.resolve("careers.acme.io") is None

        attached = await orchestrator.attach(entry.id)
        assert attached.status == ATTACHED
        assert "careers.acme.io" in provider.attached
        assert await resolver.resolve("careers.acme.io") is None

        provider.dns_configured.add("careers.acme.io")
        result = await orchestrator.verify(entry.id)
        assert result.verified is True
        assert result.status == VERIFIED

        tenant = await resolver.resolve("careers.acme.io")
        assert tenant == Tenant("acme_id", SOURCE_CUSTOM_DOMAIN)

    @pytest.mark.asyncio
    async def test_attach_is_idempotent(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        again = await orchestrator.attach(entry.id)
        assert again.status == ATTACHED

    @pytest.mark.asyncio
    async def test_attach_verified_domain_is_noop(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await registry.set_domain_status(entry.id, VERIFIED)
        provider.add_domain = AsyncMock()

        result = await orchestrator.attach(entry.id)
        assert result.status == VERIFIED
        provider.add_domain.assert_not_called()

    @pytest.mark.asyncio
    async def test_negative_verification_marks_failed(self, registry, orchestrator, resolver):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)

        result = await orchestrator.verify(entry.id)
        assert result.verified is False
        assert result.status == FAILED
        assert await resolver.resolve("careers.acme.io") is None

    @pytest.mark.asyncio
    async def test_failed_domain_can_be_verified_later(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        await orchestrator.verify(entry.id)

        provider.dns_configured.add("careers.acme.io")
        result = await orchestrator.verify(entry.id)
        assert result.verified is True
        assert (await registry.get_domain(entry.id)).status == VERIFIED

    @pytest.mark.asyncio
    async def test_verify_already_verified(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await registry.set_domain_status(entry.id, VERIFIED)
        provider.verify_domain = AsyncMock()

        result = await orchestrator.verify(entry.id)
        assert result.verified is True
        provider.verify_domain.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_id(self, orchestrator):
        with pytest.raises(NotFound):
            await orchestrator.attach("missing")
        with pytest.raises(NotFound):
            await orchestrator.verify("missing")
        with pytest.raises(NotFound):
            await orchestrator.remove_domain("missing")


class TestProviderFailures:
    @pytest.mark.asyncio
    async def test_attach_failure_keeps_status(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        provider.add_domain = AsyncMock(side_effect=ProviderError("boom", 400))

        with pytest.raises(ProviderError):
            await orchestrator.attach(entry.id)
        assert (await registry.get_domain(entry.id)).status == PENDING

    @pytest.mark.asyncio
    async def test_verify_failure_keeps_status(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        provider.verify_domain = AsyncMock(side_effect=ProviderError("network"))

        with pytest.raises(ProviderError):
            await orchestrator.verify(entry.id)
        assert (await registry.get_domain(entry.id)).status == ATTACHED

    @pytest.mark.asyncio
    async def test_timeout_is_provider_error(self, registry, provider):
        async def slow_add(domain):
            await asyncio.sleep(5)

        provider.add_domain = slow_add
        orchestrator = VerificationOrchestrator(
            registry, provider, timeout=0.05, require_dns_proof=False
        )
        entry = await registry.add_domain("org-acme", "careers.acme.io")

        with pytest.raises(ProviderError, match="timed out"):
            await orchestrator.attach(entry.id)
        assert (await registry.get_domain(entry.id)).status == PENDING

    @pytest.mark.asyncio
    async def test_remove_failure_keeps_record(self, registry, provider, orchestrator, resolver):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        provider.dns_configured.add("careers.acme.io")
        await orchestrator.verify(entry.id)

        provider.remove_domain = AsyncMock(side_effect=ProviderError("network error"))
        with pytest.raises(ProviderError):
            await orchestrator.remove_domain(entry.id)

        kept = await registry.get_domain(entry.id)
        assert kept.status == VERIFIED
        assert (await resolver.resolve("careers.acme.io")).organization_id == "org-acme"

    @pytest.mark.asyncio
    async def test_remove_detaches_then_deletes(self, registry, provider, orchestrator, resolver):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        provider.dns_configured.add("careers.acme.io")
        await orchestrator.verify(entry.id)

        await orchestrator.remove_domain(entry.id)
        assert "careers.acme.io" not in provider.attached
        with pytest.raises(NotFound):
            await registry.get_domain(entry.id)
        assert await resolver.resolve("careers.acme.io") is None

    @pytest.mark.asyncio
    async def test_remove_pending_domain(self, registry, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.remove_domain(entry.id)
        assert await registry.list_domains("org-acme") == []


class TestOwnershipProof:
    @pytest.mark.asyncio
    async def test_missing_txt_record_fails_without_provider_call(self, registry, provider):
        verifier = AsyncMock()
        verifier.verify_txt = AsyncMock(return_value=(False, "No TXT records found"))
        provider.verify_domain = AsyncMock()
        orchestrator = VerificationOrchestrator(
            registry, provider, ownership_verifier=verifier, require_dns_proof=True
        )
        entry = await registry.add_domain("org-acme", "careers.acme.io")

        result = await orchestrator.verify(entry.id)
        assert result.verified is False
        assert result.status == FAILED
        assert "No TXT" in result.message
        provider.verify_domain.assert_not_called()

    @pytest.mark.asyncio
    async def test_txt_record_then_provider(self, registry, provider):
        verifier = AsyncMock()
        verifier.verify_txt = AsyncMock(return_value=(True, "TXT record verified"))
        orchestrator = VerificationOrchestrator(
            registry, provider, ownership_verifier=verifier, require_dns_proof=True
        )
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        provider.dns_configured.add("careers.acme.io")

        result = await orchestrator.verify(entry.id)
        assert result.verified is True
        verifier.verify_txt.assert_awaited_once_with(
            "careers.acme.io", entry.verification_token
        )


class TestSubdomainsAndConfig:
    @pytest.mark.asyncio
    async def test_remove_subdomain(self, registry, orchestrator, resolver):
        entry = await registry.add_subdomain("org-acme", "acme")
        await orchestrator.remove_subdomain(entry.id)
        assert await resolver.resolve("acme.hireflow.com") is None

    @pytest.mark.asyncio
    async def test_domain_config(self, registry, provider, orchestrator):
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        config = await orchestrator.domain_config(entry.id)
        assert config["misconfigured"] is True

        provider.dns_configured.add("careers.acme.io")
        config = await orchestrator.domain_config(entry.id)
        assert config["misconfigured"] is False


class TestLookupFailures:
    @pytest.mark.asyncio
    async def test_dns_lookup_failure_keeps_status(self, registry, provider):
        verifier = OwnershipVerifier()
        mock_resolver = MagicMock()
        mock_resolver.resolve = AsyncMock(side_effect=dns.exception.Timeout())
        orchestrator = VerificationOrchestrator(
            registry, provider, ownership_verifier=verifier, require_dns_proof=True
        )
        entry = await registry.add_domain("org-acme", "careers.acme.io")
        await orchestrator.attach(entry.id)
        provider.verify_domain = AsyncMock()

        with patch.object(verifier, "_get_resolver", return_value=mock_resolver):
            with pytest.raises(ProviderError, match="TXT lookup failed"):
                await orchestrator.verify(entry.id)

        assert (await registry.get_domain(entry.id)).status == ATTACHED
        provider.verify_domain.assert_not_called()
