"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- The exception hierarchy shared by services and routers

This module re-exports the configuration and database helpers so callers can
write:

    from dnc_backend.core import get_settings, init_db, close_db

FastAPI dependencies live in dnc_backend.core.dependencies and are imported
from there directly; they depend on the service layer, which in turn depends
on this package.
"""

# =============================================================================
# Re-exports from dnc_backend.core.config
# =============================================================================
from dnc_backend.core.config import Settings, get_settings

# =============================================================================
# Re-exports from dnc_backend.core.database
# =============================================================================
from dnc_backend.core.database import init_db, close_db, get_db_pool

# =============================================================================
# Re-exports from dnc_backend.core.exceptions
# =============================================================================
from dnc_backend.core.exceptions import DncBackendError


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Errors (from exceptions.py)
    'DncBackendError',
]
