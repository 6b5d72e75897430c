"""
Pytest configuration for HireFlow tenancy tests.
"""

import os
import sys
import time

import jwt
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables
os.environ["HIREFLOW_PLATFORM_DOMAIN"] = "hireflow.com"
os.environ["HIREFLOW_STORAGE_BACKEND"] = "memory"
os.environ["HIREFLOW_DEBUG"] = "true"
os.environ["HIREFLOW_JWT_SECRET"] = "test-session-secret-with-32-bytes!"
os.environ["HIREFLOW_REQUIRE_DNS_PROOF"] = "false"

JWT_SECRET = os.environ["HIREFLOW_JWT_SECRET"]


@pytest.fixture
def test_settings():
    """Provide test settings."""
    from hireflow.config import Settings
    return Settings()


@pytest.fixture
def registry():
    """In-memory domain registry (no Redis)."""
    from hireflow.domains.registry import DomainRegistry
    from hireflow.domains.validation import DomainValidator
    return DomainRegistry(
        validator=DomainValidator(platform_domain="hireflow.com"),
        use_redis=False,
    )


@pytest.fixture
def provider():
    """In-memory domain-routing provider."""
    from hireflow.domains.provider import InMemoryDomainProvider
    return InMemoryDomainProvider()


@pytest.fixture
def orchestrator(registry, provider):
    """Orchestrator without the TXT ownership check."""
    from hireflow.domains.orchestrator import VerificationOrchestrator
    return VerificationOrchestrator(
        registry=registry,
        provider=provider,
        timeout=1.0,
        require_dns_proof=False,
    )


@pytest.fixture
def resolver(registry):
    """Host resolver for hireflow.com."""
    from hireflow.tenancy.resolver import HostResolver
    return HostResolver(registry, platform_domain="hireflow.com")


def make_session_token(user_id="user-1", org_roles=None, expires_in=3600, **claims):
    """Session JWT as issued by the authentication service."""
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        "org_roles": org_roles or {},
        **claims,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


@pytest.fixture
def app(test_settings, registry, provider):
    """Application wired to in-memory collaborators."""
    from hireflow.main import create_app
    return create_app(settings=test_settings, registry=registry, provider=provider)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def admin_headers():
    """Bearer header for an admin of org-acme, member of org-globex."""
    token = make_session_token(
        org_roles={"org-acme": "admin", "org-globex": "member"}
    )
    return {"Authorization": f"Bearer {token}"}
