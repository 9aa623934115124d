"""Routes package for FastAPI endpoints.

This package contains all API route modules for the FokusHub participant service.
"""

from fokushub.routes import admin, health, onboarding, verification

__all__ = ["admin", "health", "onboarding", "verification"]
