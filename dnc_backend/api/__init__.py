"""
Backend API package initialization.

This package contains FastAPI router modules for the DNC compliance backend:
- dnc_check: Lead batch and single-number risk checks, CSV export
- change_lists: FTC change-list job management and processing
"""

from fastapi import APIRouter

# Import router modules
from dnc_backend.api.dnc_check import router as dnc_check_router
from dnc_backend.api.change_lists import router as change_lists_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(dnc_check_router, prefix="/dnc-check", tags=["dnc-check"])
api_router.include_router(change_lists_router, prefix="/ftc-change-lists", tags=["ftc-change-lists"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "dnc_check_router",
    "change_lists_router",
]
