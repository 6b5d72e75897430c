"""Session collaborator for HireFlow."""

from .session import ADMIN_ROLE, Principal, SessionVerifier

__all__ = ["ADMIN_ROLE", "Principal", "SessionVerifier"]
