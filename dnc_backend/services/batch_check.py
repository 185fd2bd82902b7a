"""
Batch DNC Check Service

Scores a list of leads against the DNC registry with a constant number of
store round trips:

1. Normalize every lead's phone number
2. Collect the distinct valid 10-digit numbers
3. Make a single Registry Lookup Gateway call (three batched reads)
4. Score every lead in memory

Lead order and pass-through fields are preserved. Very large lists can be
scored in fixed-size chunks to bound the size of each lookup; every chunk
still costs one gateway call.

Only gateway failures propagate; invalid phone numbers are tagged, never
raised.
"""

import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

from pydantic import BaseModel

from dnc_backend.models.schemas import ProcessedLead, RiskAssessment
from dnc_backend.services.phone import is_valid_phone_key, normalize_phone_number
from dnc_backend.services.registry_lookup import RegistryLookupGateway, RegistryLookupResult
from dnc_backend.services.risk_scoring import invalid_phone_assessment, score_phone


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_CHUNK_SIZE: int = 1000

LeadLike = Union[Mapping[str, Any], BaseModel]


# =============================================================================
# Helpers
# =============================================================================

def _lead_fields(lead: LeadLike) -> Dict[str, Any]:
    """Return a lead's fields as a plain dict, extras included."""
    if isinstance(lead, BaseModel):
        return lead.model_dump()
    return dict(lead)


def _build_processed_lead(fields: Dict[str, Any], phone: str, assessment: RiskAssessment) -> ProcessedLead:
    data = dict(fields)
    data['phone_number'] = phone
    data['risk_score'] = assessment.score
    data['risk_flags'] = list(assessment.flags)
    data['dnc_status'] = assessment.status
    return ProcessedLead.model_validate(data)


def _assess(phone: str, matches: RegistryLookupResult) -> RiskAssessment:
    return score_phone(
        phone,
        is_active_dnc=phone in matches.active,
        deleted_cycle_count=matches.deleted_cycles.get(phone),
        litigator=matches.litigators.get(phone),
    )


# =============================================================================
# Orchestration
# =============================================================================

async def process_leads_batch(
    leads: Sequence[LeadLike],
    gateway: RegistryLookupGateway
) -> List[ProcessedLead]:
    """
    Score a batch of leads with a single registry lookup.

    Args:
        leads: Leads with at least a phone_number field; other fields are
            carried through unchanged.
        gateway: Registry lookup gateway, called at most once.

    Returns:
        List[ProcessedLead]: One processed lead per input lead, same order.

    Raises:
        RegistryLookupError: If the registry lookup fails.
    """
    if not leads:
        return []

    fields_list = [_lead_fields(lead) for lead in leads]
    phones = [normalize_phone_number(str(fields.get('phone_number') or '')) for fields in fields_list]

    valid_phones = list(dict.fromkeys(phone for phone in phones if is_valid_phone_key(phone)))

    if not valid_phones:
        logger.info(f"No valid phone numbers in batch of {len(leads)} leads")
        invalid = invalid_phone_assessment()
        return [
            _build_processed_lead(fields, phone, invalid)
            for fields, phone in zip(fields_list, phones)
        ]

    matches = await gateway.lookup(valid_phones)

    processed = [
        _build_processed_lead(fields, phone, _assess(phone, matches))
        for fields, phone in zip(fields_list, phones)
    ]

    logger.info(
        f"Checked {len(leads)} leads ({len(valid_phones)} distinct valid numbers): "
        f"{len(matches.active)} DNC, {len(matches.deleted_cycles)} removed, "
        f"{len(matches.litigators)} litigators"
    )

    return processed


async def process_leads_in_chunks(
    leads: Sequence[LeadLike],
    gateway: RegistryLookupGateway,
    chunk_size: int = DEFAULT_CHUNK_SIZE
) -> List[ProcessedLead]:
    """
    Score a large lead list chunk by chunk and concatenate the results.

    Args:
        leads: Leads to score.
        gateway: Registry lookup gateway, called once per chunk.
        chunk_size: Leads per chunk.

    Returns:
        List[ProcessedLead]: Processed leads in input order.

    Raises:
        ValueError: If chunk_size is not positive.
        RegistryLookupError: If any chunk's lookup fails.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    results: List[ProcessedLead] = []
    total_chunks = (len(leads) + chunk_size - 1) // chunk_size

    for index, start in enumerate(range(0, len(leads), chunk_size), start=1):
        chunk = leads[start:start + chunk_size]
        results.extend(await process_leads_batch(chunk, gateway))
        logger.debug(f"Processed chunk {index}/{total_chunks}")

    return results


__all__ = [
    'DEFAULT_CHUNK_SIZE',
    'process_leads_batch',
    'process_leads_in_chunks',
]
