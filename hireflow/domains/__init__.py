"""Custom domain and subdomain management for HireFlow."""

from .dns import DnsInstructions, DnsRecord, OwnershipVerifier, get_dns_instructions
from .models import CustomDomain, Subdomain
from .orchestrator import VerificationOrchestrator, VerificationResult
from .provider import InMemoryDomainProvider, VercelDomainProvider
from .registry import DomainRegistry
from .validation import DomainValidator

__all__ = [
    "CustomDomain",
    "Subdomain",
    "DomainRegistry",
    "DomainValidator",
    "DnsInstructions",
    "DnsRecord",
    "get_dns_instructions",
    "OwnershipVerifier",
    "VercelDomainProvider",
    "InMemoryDomainProvider",
    "VerificationOrchestrator",
    "VerificationResult",
]
