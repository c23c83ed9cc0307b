"""
API package for the Aether account and support backend.

FastAPI application with:
- Separate routers per feature
- Dependency-injected sessions and caller context
- Uniform error bodies
"""

from .app import app

__all__ = ["app"]
