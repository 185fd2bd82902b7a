"""
Registry Lookup Gateway

Batched read interface over the three registry sets used for risk scoring:
- Active federal DNC numbers
- Recently removed numbers with their add/remove cycle count
- Known litigators with case count and risk level

A lookup for N phone numbers costs exactly three store reads, never one per
number. If any read fails the whole lookup fails with RegistryLookupError;
callers never score against partial data.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from dnc_backend.core.exceptions import RegistryLookupError
from dnc_backend.models.schemas import LitigatorInfo
from dnc_backend.repositories.base import RegistryRepository
from dnc_backend.services.phone import is_valid_phone_key


logger = logging.getLogger(__name__)


@dataclass
class RegistryLookupResult:
    """Registry matches for a set of phone numbers."""
    active: Set[str] = field(default_factory=set)
    deleted_cycles: Dict[str, int] = field(default_factory=dict)
    litigators: Dict[str, LitigatorInfo] = field(default_factory=dict)


class RegistryLookupGateway:
    """
    Performs the three batched registry reads behind a risk check.

    Args:
        repository: Registry store the reads are issued against.
    """

    def __init__(self, repository: RegistryRepository) -> None:
        self._repository = repository

    async def lookup(self, phone_keys: Iterable[str]) -> RegistryLookupResult:
        """
        Look up a set of normalized phone numbers.

        Duplicates are collapsed and anything that is not a 10-digit key is
        ignored. An empty key set returns an empty result without touching
        the store.

        Args:
            phone_keys: Normalized 10-digit phone numbers.

        Returns:
            RegistryLookupResult: Active set, cycle counts and litigators.

        Raises:
            RegistryLookupError: If any of the three reads fails.
        """
        keys: List[str] = [key for key in dict.fromkeys(phone_keys) if is_valid_phone_key(key)]

        if not keys:
            return RegistryLookupResult()

        try:
            active = await self._repository.find_active_by_phones(keys)
            deleted_cycles = await self._repository.find_deleted_tracking_by_phones(keys)
            litigators = await self._repository.find_litigators_by_phones(keys)
        except Exception as e:
            logger.error(f"Registry lookup failed for {len(keys)} phone numbers: {e}")
            raise RegistryLookupError(f"Registry lookup failed: {e}", cause=e) from e

        logger.debug(
            f"Registry lookup: {len(keys)} keys, {len(active)} active, "
            f"{len(deleted_cycles)} removed, {len(litigators)} litigators"
        )

        return RegistryLookupResult(
            active=set(active),
            deleted_cycles=dict(deleted_cycles),
            litigators=dict(litigators),
        )


__all__ = [
    'RegistryLookupResult',
    'RegistryLookupGateway',
]
