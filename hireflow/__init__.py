"""HireFlow tenant routing and custom domain management."""

__version__ = "0.1.0"
