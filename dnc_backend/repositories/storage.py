"""
Blob storage for uploaded FTC change-list files.

Implementations:
- SupabaseStorage: Supabase Storage REST API over httpx
- LocalFileStore: a directory on disk, for local runs of the worker

download_file_url() fetches a change list that was registered with a direct
file_url instead of a Storage upload.

Usage:
    store = SupabaseStorage(settings.supabase_url, settings.supabase_service_role_key)
    names = await store.list("ftc-change-lists/<job id>")
    content = await store.download(f"ftc-change-lists/<job id>/{names[0]}")
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from dnc_backend.core.exceptions import StorageError
from dnc_backend.repositories.base import FileStore


logger = logging.getLogger(__name__)


# Supabase caps a list call at 100 objects per page by default
_LIST_PAGE_SIZE = 100


class SupabaseStorage(FileStore):
    """
    Supabase Storage bucket accessed through its REST API.

    Args:
        base_url: Supabase project URL (https://<ref>.supabase.co).
        api_key: Service role key; sent as both bearer token and apikey.
        bucket: Bucket name, 'admin-uploads' by default.
        timeout: Request timeout in seconds.
        client: Optional preconfigured httpx.AsyncClient, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str = 'admin-uploads',
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip('/')
        self._bucket = bucket
        self._timeout = timeout
        self._client = client
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=self._headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"Storage request failed ({exc.response.status_code}): {url}", cause=exc
            ) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request failed: {url}: {exc}", cause=exc) from exc

    async def list(self, path: str) -> List[str]:
        """List object names under path, sorted by name."""
        payload: Dict[str, Any] = {
            "prefix": path.strip('/'),
            "limit": _LIST_PAGE_SIZE,
            "offset": 0,
            "sortBy": {"column": "name", "order": "asc"},
        }
        response = await self._request(
            "POST",
            f"{self._base_url}/storage/v1/object/list/{self._bucket}",
            json=payload,
        )
        # Folders come back with a null id
        return [item["name"] for item in response.json() if item.get("id") is not None]

    async def download(self, path: str) -> bytes:
        response = await self._request(
            "GET",
            f"{self._base_url}/storage/v1/object/{self._bucket}/{path.lstrip('/')}",
        )
        return response.content


class LocalFileStore(FileStore):
    """Blob store rooted at a local directory."""

    def __init__(self, root: str) -> None:
        self._root = Path(root)

    async def list(self, path: str) -> List[str]:
        directory = self._root / path
        if not directory.is_dir():
            return []
        return sorted(child.name for child in directory.iterdir() if child.is_file())

    async def download(self, path: str) -> bytes:
        target = self._root / path
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageError(f"Cannot read {target}: {exc}", cause=exc) from exc


async def download_file_url(
    url: str,
    timeout: float = 30.0,
    client: Optional[httpx.AsyncClient] = None,
) -> bytes:
    """
    Download a change-list file from a direct URL.

    Args:
        url: File URL stored on the job.
        timeout: Request timeout in seconds.
        client: Optional preconfigured httpx.AsyncClient.

    Returns:
        bytes: File contents.

    Raises:
        StorageError: On any HTTP or transport error.
    """
    logger.info(f"Downloading change list from {url}")
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise StorageError(f"Failed to download {url}: {exc}", cause=exc) from exc
    return response.content


__all__ = [
    'SupabaseStorage',
    'LocalFileStore',
    'download_file_url',
]
