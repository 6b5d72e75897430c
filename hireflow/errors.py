"""
Error taxonomy for tenant domain management.
"""

from typing import Optional


class TenancyError(Exception):
    """Base class for domain registry and verification errors."""
    pass


class ValidationError(TenancyError):
    """Malformed domain/subdomain or reserved word."""
    pass


class DuplicateDomain(TenancyError):
    """Domain or subdomain already owned by an organization."""
    pass


class NotFound(TenancyError):
    """No record with the requested id."""
    pass


class RegistryError(TenancyError):
    """Backing store failure."""
    pass


class ProviderError(TenancyError):
    """External domain-routing provider call failed or timed out."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
