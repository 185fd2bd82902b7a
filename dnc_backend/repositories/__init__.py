"""
Store interfaces and implementations for the DNC backend.

- base: abstract RegistryRepository, ChangeListRepository and FileStore
- postgres: asyncpg implementations used in production
- inmemory: dict-backed implementations for local runs and tests
- storage: Supabase Storage and local-directory file stores
"""

from dnc_backend.repositories.base import (
    RegistryRepository,
    ChangeListRepository,
    FileStore,
)
from dnc_backend.repositories.postgres import (
    PostgresRegistryRepository,
    PostgresChangeListRepository,
)
from dnc_backend.repositories.inmemory import (
    InMemoryRegistryRepository,
    InMemoryChangeListRepository,
    InMemoryFileStore,
)
from dnc_backend.repositories.storage import (
    SupabaseStorage,
    LocalFileStore,
    download_file_url,
)

__all__ = [
    'RegistryRepository',
    'ChangeListRepository',
    'FileStore',
    'PostgresRegistryRepository',
    'PostgresChangeListRepository',
    'InMemoryRegistryRepository',
    'InMemoryChangeListRepository',
    'InMemoryFileStore',
    'SupabaseStorage',
    'LocalFileStore',
    'download_file_url',
]
