"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.recipes import router as recipes_router
from routes.templates import router as templates_router

__all__ = [
    "recipes_router",
    "templates_router",
]
