"""API route handlers."""

from api.routes import health, por, verify

__all__ = ["health", "por", "verify"]
