"""
FastAPI dependency injection module for the DNC compliance backend.

This module provides reusable FastAPI dependencies that build the stores and
services endpoint handlers need. Services never reach for the connection pool
themselves; the pool is turned into repository objects here and handed to
them, which keeps every service testable against in-memory stores.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the cached Settings singleton
- get_db_pool_dependency: the shared asyncpg pool
- get_registry_repository / get_change_list_repository: Postgres stores
- get_registry_gateway / RegistryGatewayDep: batched registry lookups
- get_file_store: Supabase Storage bucket or local directory, when configured
- get_notifier: completion email/Slack notifier
- get_change_list_controller / ChangeListControllerDep: job controller

build_change_list_controller() wires the same object graph outside FastAPI
and is used by the change-list worker.

Usage Examples:
    @router.post("/dnc-check")
    async def check(request: DncCheckRequest, gateway: RegistryGatewayDep):
        leads = await process_leads_batch(request.leads, gateway)

    # In tests
    app.dependency_overrides[get_registry_gateway] = lambda: fake_gateway
"""

from functools import partial
from typing import Annotated, Optional

from asyncpg import Pool
from fastapi import Depends

from dnc_backend.core.config import Settings, get_settings
from dnc_backend.core.database import get_db_pool
from dnc_backend.repositories.base import ChangeListRepository, FileStore, RegistryRepository
from dnc_backend.repositories.postgres import PostgresChangeListRepository, PostgresRegistryRepository
from dnc_backend.repositories.storage import LocalFileStore, SupabaseStorage, download_file_url
from dnc_backend.services.change_list_applier import ChangeListApplier
from dnc_backend.services.change_list_jobs import ChangeListJobController
from dnc_backend.services.notifications import ChangeListNotifier
from dnc_backend.services.registry_lookup import RegistryLookupGateway
from dnc_backend.services.retry import RetryPolicy


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    This is a thin wrapper around get_settings() to enable FastAPI's
    dependency override mechanism for testing:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Store Dependencies
# =============================================================================

async def get_db_pool_dependency() -> Pool:
    """Return the shared asyncpg pool, initializing it on first use."""
    return await get_db_pool()


def get_registry_repository(
    pool: Annotated[Pool, Depends(get_db_pool_dependency)]
) -> RegistryRepository:
    return PostgresRegistryRepository(pool)


def get_change_list_repository(
    pool: Annotated[Pool, Depends(get_db_pool_dependency)]
) -> ChangeListRepository:
    return PostgresChangeListRepository(pool)


def build_file_store(settings: Settings) -> Optional[FileStore]:
    """
    Build the blob store holding uploaded change-list files.

    Returns:
        Optional[FileStore]: SupabaseStorage when the project URL and service
            role key are set, else a LocalFileStore when local_storage_dir is
            set, else None (jobs must then carry a file_url).
    """
    if not settings.supabase_url or not settings.supabase_service_role_key:
        if settings.local_storage_dir:
            return LocalFileStore(settings.local_storage_dir)
        return None
    return SupabaseStorage(
        base_url=settings.supabase_url,
        api_key=settings.supabase_service_role_key,
        bucket=settings.storage_bucket,
        timeout=settings.http_timeout_seconds,
    )


def get_file_store(settings: SettingsDep) -> Optional[FileStore]:
    return build_file_store(settings)


def get_notifier(settings: SettingsDep) -> ChangeListNotifier:
    return ChangeListNotifier(settings)


# =============================================================================
# Service Dependencies
# =============================================================================

def get_registry_gateway(
    repository: Annotated[RegistryRepository, Depends(get_registry_repository)]
) -> RegistryLookupGateway:
    return RegistryLookupGateway(repository)


def build_change_list_controller(
    settings: Settings,
    change_lists: ChangeListRepository,
    registry: RegistryRepository,
    file_store: Optional[FileStore] = None,
    notifier: Optional[ChangeListNotifier] = None,
) -> ChangeListJobController:
    """
    Wire a ChangeListJobController from settings and stores.

    Args:
        settings: Application settings (batch size, retry, retention, caps).
        change_lists: Job/subscription/audit store.
        registry: Registry store the applier writes to.
        file_store: Blob store for uploaded files.
        notifier: Completion notifier.

    Returns:
        ChangeListJobController: Ready-to-use controller.
    """
    applier = ChangeListApplier(
        registry,
        retry_policy=RetryPolicy.from_settings(settings),
        retention_days=settings.deleted_retention_days,
    )
    return ChangeListJobController(
        change_lists,
        applier,
        file_store=file_store,
        notifier=notifier,
        batch_size=settings.change_list_batch_size,
        storage_prefix=settings.change_list_storage_prefix,
        max_error_details=settings.max_error_details,
        url_fetcher=partial(download_file_url, timeout=settings.http_timeout_seconds),
    )


def get_change_list_controller(
    settings: SettingsDep,
    change_lists: Annotated[ChangeListRepository, Depends(get_change_list_repository)],
    registry: Annotated[RegistryRepository, Depends(get_registry_repository)],
    file_store: Annotated[Optional[FileStore], Depends(get_file_store)],
    notifier: Annotated[ChangeListNotifier, Depends(get_notifier)],
) -> ChangeListJobController:
    return build_change_list_controller(settings, change_lists, registry, file_store, notifier)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(gateway: RegistryGatewayDep)
RegistryGatewayDep = Annotated[RegistryLookupGateway, Depends(get_registry_gateway)]

# Usage: async def endpoint(controller: ChangeListControllerDep)
ChangeListControllerDep = Annotated[ChangeListJobController, Depends(get_change_list_controller)]


__all__ = [
    'get_settings_dependency',
    'SettingsDep',
    'get_db_pool_dependency',
    'get_registry_repository',
    'get_change_list_repository',
    'build_file_store',
    'get_file_store',
    'get_notifier',
    'get_registry_gateway',
    'build_change_list_controller',
    'get_change_list_controller',
    'RegistryGatewayDep',
    'ChangeListControllerDep',
]
