"""
Format and reservation rules for custom domains and platform subdomains.
"""

import re
from typing import FrozenSet, Iterable, Optional

from ..errors import ValidationError

DEFAULT_RESERVED_SUBDOMAINS: FrozenSet[str] = frozenset({
    "www", "admin", "api", "app", "mail", "email", "smtp", "imap",
    "ftp", "ssh", "ns1", "ns2", "dns", "cdn", "static", "assets",
    "blog", "docs", "help", "support", "status", "staging", "dev",
    "test", "demo", "dashboard", "login", "signup", "auth", "oauth",
    "careers", "jobs", "hire", "hireflow",
})

MIN_DOMAIN_LENGTH = 4
MAX_DOMAIN_LENGTH = 253
MIN_SUBDOMAIN_LENGTH = 3
MAX_SUBDOMAIN_LENGTH = 63

# One DNS label: 1-63 chars, no leading/trailing hyphen
_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
_DOMAIN_RE = re.compile(rf"^{_LABEL}(?:\.{_LABEL})+$")
_SUBDOMAIN_RE = re.compile(rf"^{_LABEL}$")


def normalize_host(host: str) -> str:
    """Lowercase a host and strip any :port suffix and trailing dot."""
    host = host.strip().lower()
    if host.startswith("["):
        # IPv6 literal, never a tenant host
        return host
    host = re.sub(r":\d+$", "", host)
    return host.rstrip(".")


class DomainValidator:
    """
    Validates and normalizes tenant-supplied domain names.

    The reserved word set is injected so it can be extended per deployment.
    """

    def __init__(
        self,
        platform_domain: str = "hireflow.com",
        reserved_words: Optional[Iterable[str]] = None,
    ):
        self.platform_domain = platform_domain.lower().rstrip(".")
        if reserved_words is None:
            reserved_words = DEFAULT_RESERVED_SUBDOMAINS
        self.reserved_words: FrozenSet[str] = frozenset(
            w.strip().lower() for w in reserved_words
        )

    def normalize_domain(self, value: str) -> str:
        """Return the normalized FQDN or raise ValidationError."""
        domain = (value or "").strip().lower().rstrip(".")

        if len(domain) < MIN_DOMAIN_LENGTH:
            raise ValidationError("Domain must be at least 4 characters")
        if len(domain) > MAX_DOMAIN_LENGTH:
            raise ValidationError("Domain too long")
        if not _DOMAIN_RE.match(domain):
            raise ValidationError(
                "Invalid domain format. Use lowercase letters, numbers, "
                "hyphens, and dots only"
            )

        # Platform hosts are allocated as subdomains, never as custom domains
        if domain == self.platform_domain or domain.endswith(
            f".{self.platform_domain}"
        ):
            raise ValidationError(
                f"Cannot register {self.platform_domain} or its subdomains "
                f"as a custom domain"
            )
        return domain

    def normalize_subdomain(self, value: str) -> str:
        """Return the normalized single label or raise ValidationError."""
        label = (value or "").strip().lower()

        if "." in label:
            raise ValidationError("Subdomain must be a single label")
        if len(label) < MIN_SUBDOMAIN_LENGTH:
            raise ValidationError("Subdomain must be at least 3 characters")
        if len(label) > MAX_SUBDOMAIN_LENGTH:
            raise ValidationError("Subdomain too long")
        if not _SUBDOMAIN_RE.match(label):
            raise ValidationError(
                "Subdomain must be lowercase letters, numbers, and hyphens only"
            )
        if label in self.reserved_words:
            raise ValidationError("This subdomain is reserved")
        return label
