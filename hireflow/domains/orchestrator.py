"""
Custom domain lifecycle against the external domain-routing provider.

    pending --attach--> attached --verify--> verified
    any provider failure leaves the status unchanged and raises ProviderError
    remove detaches at the provider first, then deletes the record
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from ..errors import ProviderError
from .dns import OwnershipVerifier
from .models import ATTACHED, FAILED, VERIFIED, CustomDomain, Subdomain
from .registry import DomainRegistry

logger = logging.getLogger("hireflow.domains.orchestrator")

T = TypeVar("T")


@dataclass
class VerificationResult:
    """Outcome of an explicit verify request."""

    domain: str
    status: str
    verified: bool
    message: str

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "status": self.status,
            "verified": self.verified,
            "message": self.message,
        }


class VerificationOrchestrator:
    """
    Owns the status transitions of custom domains.

    Attach, verify and remove are separate, admin-triggered operations; nothing
    here polls the provider in the background.
    """

    def __init__(
        self,
        registry: DomainRegistry,
        provider,
        ownership_verifier: Optional[OwnershipVerifier] = None,
        timeout: float = 15.0,
        require_dns_proof: bool = True,
    ):
        self.registry = registry
        self.provider = provider
        self.ownership_verifier = ownership_verifier or OwnershipVerifier()
        self.timeout = timeout
        self.require_dns_proof = require_dns_proof

    async def _provider_call(self, action: str, domain: str, call: Awaitable[T]) -> T:
        """Run one provider operation bounded by the orchestrator timeout."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Provider {action} timed out for {domain}")
            raise ProviderError(
                f"Provider {action} timed out after {self.timeout}s"
            ) from e
        except ProviderError as e:
            logger.error(f"Provider {action} failed for {domain}: {e}")
            raise

    async def attach(self, domain_id: str) -> CustomDomain:
        """
        Attach a registered domain to the application at the provider.

        Re-attaching is a success; a verified domain is returned untouched.
        """
        entry = await self.registry.get_domain(domain_id)
        if entry.status == VERIFIED:
            return entry

        await self._provider_call(
            "attach", entry.domain, self.provider.add_domain(entry.domain)
        )

        if entry.status == ATTACHED:
            return entry
        return await self.registry.set_domain_status(domain_id, ATTACHED)

    async def verify(self, domain_id: str) -> VerificationResult:
        """
        Confirm DNS for a domain after the admin configured its records.

        A negative answer marks the domain failed (retryable); a provider
        error leaves the status unchanged and propagates.
        """
        entry = await self.registry.get_domain(domain_id)
        if entry.status == VERIFIED:
            return VerificationResult(
                domain=entry.domain,
                status=VERIFIED,
                verified=True,
                message="Domain is already verified",
            )

        if self.require_dns_proof:
            ok, message = await self.ownership_verifier.verify_txt(
                entry.domain, entry.verification_token
            )
            if not ok:
                logger.info(f"Ownership proof missing for {entry.domain}: {message}")
                updated = await self.registry.set_domain_status(domain_id, FAILED)
                return VerificationResult(
                    domain=entry.domain,
                    status=updated.status,
                    verified=False,
                    message=message,
                )

        body = await self._provider_call(
            "verify", entry.domain, self.provider.verify_domain(entry.domain)
        )

        if body.get("verified"):
            updated = await self.registry.set_domain_status(domain_id, VERIFIED)
            logger.info(f"Domain verified: {entry.domain}")
            return VerificationResult(
                domain=entry.domain,
                status=updated.status,
                verified=True,
                message="Domain verified",
            )

        updated = await self.registry.set_domain_status(domain_id, FAILED)
        return VerificationResult(
            domain=entry.domain,
            status=updated.status,
            verified=False,
            message=body.get("message") or (
                "The provider could not confirm DNS for this domain yet"
            ),
        )

    async def remove_domain(self, domain_id: str) -> CustomDomain:
        """
        Detach a domain at the provider, then delete its record.

        If the provider call fails the record is kept so the domain cannot be
        claimed by another organization while still routed.
        """
        entry = await self.registry.get_domain(domain_id)

        await self._provider_call(
            "remove", entry.domain, self.provider.remove_domain(entry.domain)
        )

        return await self.registry.remove_domain(domain_id)

    async def remove_subdomain(self, subdomain_id: str) -> Subdomain:
        """Subdomains live under the platform wildcard: no provider teardown."""
        return await self.registry.remove_subdomain(subdomain_id)

    async def domain_config(self, domain_id: str) -> dict:
        """Provider's view of the domain's DNS configuration."""
        entry = await self.registry.get_domain(domain_id)
        config = await self._provider_call(
            "config", entry.domain, self.provider.get_domain_config(entry.domain)
        )
        return {
            "domain": entry.domain,
            "status": entry.status,
            "misconfigured": bool(config.get("misconfigured", True)),
            "config": config,
        }
