"""HTTP API for HireFlow tenancy."""

from .domains import router as domains_router
from .routes import router as general_router
from .subdomains import router as subdomains_router

__all__ = ["domains_router", "general_router", "subdomains_router"]
