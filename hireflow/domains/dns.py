"""
DNS records for custom domains: operator instructions and ownership proof.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Tuple

import dns.asyncresolver
import dns.exception
import dns.resolver

from ..errors import ProviderError

logger = logging.getLogger("hireflow.domains.dns")

VERIFICATION_PREFIX = "hireflow-verify"
VERIFICATION_HOST_PREFIX = f"_{VERIFICATION_PREFIX}"
DEFAULT_ROUTING_TARGET = "cname.vercel-dns.com"


@dataclass(frozen=True)
class DnsRecord:
    """One DNS record an operator must configure."""

    type: str
    host: str
    value: str
    description: str


@dataclass(frozen=True)
class DnsInstructions:
    """Routing record plus ownership-proof record for a custom domain."""

    target_record: DnsRecord
    verification_record: DnsRecord

    def to_dict(self) -> dict:
        return {
            "target_record": asdict(self.target_record),
            "verification_record": asdict(self.verification_record),
        }


def verification_host(domain: str) -> str:
    return f"{VERIFICATION_HOST_PREFIX}.{domain}"


def verification_value(token: str) -> str:
    return f"{VERIFICATION_PREFIX}={token}"


def get_dns_instructions(
    domain: str,
    token: str,
    routing_target: str = DEFAULT_ROUTING_TARGET,
) -> DnsInstructions:
    """
    Derive the DNS records for a custom domain.

    Pure: computed only from its arguments, so the same inputs always give the
    same records. The token appears only in the verification record.
    """
    domain = domain.lower().rstrip(".")
    return DnsInstructions(
        target_record=DnsRecord(
            type="CNAME",
            host=domain,
            value=routing_target,
            description=f"Add a CNAME record to point {domain} to HireFlow",
        ),
        verification_record=DnsRecord(
            type="TXT",
            host=verification_host(domain),
            value=verification_value(token),
            description=f"Add a TXT record to verify ownership of {domain}",
        ),
    )


class OwnershipVerifier:
    """Checks the ownership-proof TXT record of a custom domain."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        resolver = dns.asyncresolver.Resolver()
        resolver.timeout = self.timeout
        resolver.lifetime = self.timeout
        return resolver

    async def verify_txt(self, domain: str, token: str) -> Tuple[bool, str]:
        """
        Verify TXT record at _hireflow-verify.{domain}.

        Expected record: hireflow-verify={token}
        Returns (success, message). Raises ProviderError when the lookup
        itself fails (timeout, SERVFAIL, no nameservers).
        """
        domain = domain.lower().rstrip(".")
        txt_domain = verification_host(domain)
        expected = verification_value(token)
        resolver = self._get_resolver()

        try:
            answers = await resolver.resolve(txt_domain, "TXT")
        except dns.resolver.NoAnswer:
            return False, f"No TXT records found at {txt_domain}"
        except dns.resolver.NXDOMAIN:
            return False, f"{txt_domain} does not exist (NXDOMAIN)"
        except dns.exception.DNSException as e:
            # Timeouts and SERVFAIL say nothing about ownership
            logger.warning(f"TXT lookup failed for {txt_domain}: {e}")
            raise ProviderError(f"TXT lookup failed for {txt_domain}: {e}") from e

        found = []
        for rdata in answers:
            # TXT records may be split into multiple strings
            txt_value = "".join(
                s.decode("utf-8", "replace") if isinstance(s, bytes) else s
                for s in rdata.strings
            )
            if txt_value == expected:
                return True, f"TXT record verified at {txt_domain}"
            found.append(txt_value)

        return False, (
            f"TXT records found at {txt_domain} but none match. "
            f"Found {len(found)} record(s)"
        )
