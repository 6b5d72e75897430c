"""
Configuration management for HireFlow tenancy.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

from .domains.validation import DEFAULT_RESERVED_SUBDOMAINS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8000
    platform_domain: str = "hireflow.com"

    # Registry storage ("redis" or "memory")
    storage_backend: str = "redis"
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "hireflow:"

    # Subdomain allocation
    reserved_subdomains: List[str] = sorted(DEFAULT_RESERVED_SUBDOMAINS)

    # Domain-routing provider (Vercel)
    vercel_api_base: str = "https://api.vercel.com"
    vercel_api_token: str = ""
    vercel_project_id: str = ""
    vercel_team_id: str = ""
    routing_target: str = "cname.vercel-dns.com"
    provider_timeout: float = 15.0  # seconds per provider call
    provider_max_attempts: int = 3
    provider_backoff_min: float = 0.5
    provider_backoff_max: float = 4.0

    # Ownership proof (TXT record check)
    require_dns_proof: bool = True
    dns_timeout: float = 10.0

    # Session collaborator
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"
    session_cookie: str = "hireflow-access-token"

    # Redirect policy
    login_path: str = "/login"
    landing_path: str = "/dashboard"
    public_routes: List[str] = [
        "/login",
        "/signup",
        "/forgot-password",
        "/set-password",
        "/careers",
        "/api/webhooks",
        "/org/new",
    ]
    auth_callback_routes: List[str] = ["/api/auth", "/callback"]

    # Logging
    log_level: str = "INFO"

    # Debug mode
    debug: bool = False

    model_config = {
        "env_prefix": "HIREFLOW_",
        "env_file": ".env",
        "extra": "ignore"
    }

    def validate_required(self) -> bool:
        """Validate that required settings are configured."""
        if not self.vercel_api_token or not self.vercel_project_id:
            raise ValueError(
                "HIREFLOW_VERCEL_API_TOKEN and HIREFLOW_VERCEL_PROJECT_ID are "
                "required to attach, verify or remove custom domains"
            )
        if not self.jwt_secret:
            raise ValueError(
                "HIREFLOW_JWT_SECRET is required to read caller sessions"
            )
        return True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    # In production, validate required fields
    if not settings.debug:
        try:
            settings.validate_required()
        except ValueError as e:
            logging.warning(f"Configuration warning: {e}")
    return settings
