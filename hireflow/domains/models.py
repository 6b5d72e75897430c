"""
Custom domain and platform subdomain data models for HireFlow.
"""

import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# CustomDomain.status values
PENDING = "pending"
ATTACHED = "attached"
VERIFIED = "verified"
FAILED = "failed"
DOMAIN_STATUSES = (PENDING, ATTACHED, VERIFIED, FAILED)

# Subdomain.status values
ACTIVE = "active"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def generate_verification_token() -> str:
    """Opaque ownership-proof token: 32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class CustomDomain:
    """A domain owned by an organization, routed once verified."""

    organization_id: str
    domain: str
    status: str = PENDING
    verification_token: str = field(default_factory=generate_verification_token)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.status == VERIFIED

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "domain": self.domain,
            "status": self.status,
            "verification_token": self.verification_token,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CustomDomain":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            organization_id=data["organization_id"],
            domain=data["domain"],
            status=data.get("status", PENDING),
            verification_token=data["verification_token"],
            created_at=_parse_dt(data.get("created_at")) or _utcnow(),
            updated_at=_parse_dt(data.get("updated_at")),
            verified_at=_parse_dt(data.get("verified_at")),
        )

    def to_api_response(self) -> dict:
        """Convert to API response; admins need the token to publish it."""
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "domain": self.domain,
            "status": self.status,
            "verification_token": self.verification_token,
            "created_at": self.created_at.isoformat(),
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }


@dataclass
class Subdomain:
    """A single label under the platform apex, active on creation."""

    organization_id: str
    subdomain: str
    status: str = ACTIVE
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def host(self, platform_domain: str) -> str:
        return f"{self.subdomain}.{platform_domain}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "subdomain": self.subdomain,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Subdomain":
        return cls(
            id=data["id"],
            organization_id=data["organization_id"],
            subdomain=data["subdomain"],
            status=data.get("status", ACTIVE),
            created_at=_parse_dt(data.get("created_at")) or _utcnow(),
        )
