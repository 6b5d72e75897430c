"""
FastAPI application for HireFlow tenant routing and domain management.

Run with: uvicorn --factory hireflow.main:create_app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import domains_router, general_router, subdomains_router
from .auth.session import SessionVerifier
from .config import Settings, get_settings
from .domains.dns import OwnershipVerifier
from .domains.orchestrator import VerificationOrchestrator
from .domains.provider import InMemoryDomainProvider, VercelDomainProvider
from .domains.registry import DomainRegistry
from .domains.validation import DomainValidator
from .tenancy.gate import RedirectPolicy, RequestGate
from .tenancy.resolver import HostResolver

logger = logging.getLogger("hireflow")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_provider(settings: Settings):
    """Vercel when configured; the in-memory provider only in debug."""
    if settings.debug and not (settings.vercel_api_token and settings.vercel_project_id):
        logger.warning("Vercel not configured, using in-memory domain provider")
        return InMemoryDomainProvider()
    return VercelDomainProvider(
        api_token=settings.vercel_api_token,
        project_id=settings.vercel_project_id,
        team_id=settings.vercel_team_id,
        api_base=settings.vercel_api_base,
        timeout=settings.provider_timeout,
        max_attempts=settings.provider_max_attempts,
        backoff_min=settings.provider_backoff_min,
        backoff_max=settings.provider_backoff_max,
    )


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[DomainRegistry] = None,
    provider=None,
    ownership_verifier: Optional[OwnershipVerifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if registry is None:
        registry = DomainRegistry(
            validator=DomainValidator(
                platform_domain=settings.platform_domain,
                reserved_words=settings.reserved_subdomains,
            ),
            redis_url=settings.redis_url,
            key_prefix=settings.key_prefix,
            use_redis=settings.storage_backend == "redis",
            routing_target=settings.routing_target,
        )
    if provider is None:
        provider = build_provider(settings)

    orchestrator = VerificationOrchestrator(
        registry=registry,
        provider=provider,
        ownership_verifier=ownership_verifier or OwnershipVerifier(
            timeout=settings.dns_timeout
        ),
        # Covers every attempt and backoff of one provider operation
        timeout=(
            settings.provider_timeout * settings.provider_max_attempts
            + settings.provider_backoff_max * (settings.provider_max_attempts - 1)
        ),
        require_dns_proof=settings.require_dns_proof,
    )
    resolver = HostResolver(registry, platform_domain=settings.platform_domain)
    session_verifier = SessionVerifier(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        audience=settings.jwt_audience,
        cookie_name=settings.session_cookie,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"HireFlow tenancy started for {settings.platform_domain} "
            f"(storage: {settings.storage_backend})"
        )
        yield
        await provider.close()
        await registry.close()
        logger.info("HireFlow tenancy stopped")

    app = FastAPI(
        title="HireFlow Tenancy",
        description="Tenant resolution and custom domain management",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.domain_registry = registry
    app.state.orchestrator = orchestrator
    app.state.resolver = resolver
    app.state.session_verifier = session_verifier

    app.add_middleware(
        RequestGate,
        resolver=resolver,
        session_verifier=session_verifier,
        policy=RedirectPolicy(
            login_path=settings.login_path,
            landing_path=settings.landing_path,
            public_routes=tuple(settings.public_routes),
            auth_callback_routes=tuple(settings.auth_callback_routes),
        ),
    )

    app.include_router(general_router)
    app.include_router(domains_router)
    app.include_router(subdomains_router)
    return app
