"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.verification import router as verification_router

__all__ = [
    "verification_router",
]
