"""
Pytest test module for the batch DNC check and the registry lookup gateway.

The key property under test is the round-trip bound: scoring N leads costs
one gateway call (three store reads) regardless of N, and zero reads when
no lead has a valid phone number.

Test Classes:
- TestRegistryLookupGateway: Batched reads, key filtering, fail-fast
- TestProcessLeadsBatch: Scoring, order, pass-through fields
- TestProcessLeadsInChunks: Chunking and per-chunk gateway calls
- TestEndToEndRiskCheck: Batch scoring plus statistics
"""

from typing import Any, Dict, List

import pytest

from dnc_backend.core.exceptions import RegistryLookupError
from dnc_backend.models.enums import DncStatus, RiskFlag
from dnc_backend.models.schemas import LeadInput, RegistryEntry
from dnc_backend.services.batch_check import process_leads_batch, process_leads_in_chunks
from dnc_backend.services.registry_lookup import RegistryLookupGateway
from dnc_backend.services.statistics import calculate_batch_stats

from dnc_backend.tests.conftest import CountingRegistryRepository


pytestmark = pytest.mark.asyncio


def _seed_active(repository: CountingRegistryRepository, phone: str) -> None:
    repository.add_registry_entry(
        RegistryEntry(phone_number=phone, area_code=phone[:3], record_status='active')
    )


# =============================================================================
# Test Class: TestRegistryLookupGateway
# =============================================================================

class TestRegistryLookupGateway:
    """RegistryLookupGateway issues exactly three reads per lookup."""

    async def test_three_reads_for_many_keys(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        keys = [f"555{i:07d}" for i in range(500)]
        _seed_active(registry_repository, keys[0])
        registry_repository.add_litigator(keys[1], case_count=3)

        result = await registry_gateway.lookup(keys)

        assert registry_repository.read_calls() == 3
        assert result.active == {keys[0]}
        assert set(result.litigators) == {keys[1]}

    async def test_empty_key_set_skips_store(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        result = await registry_gateway.lookup([])

        assert registry_repository.read_calls() == 0
        assert result.active == set()

    async def test_invalid_keys_filtered(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        result = await registry_gateway.lookup(["123", "abc"])

        assert registry_repository.read_calls() == 0
        assert result.deleted_cycles == {}

    async def test_inactive_registry_rows_not_reported(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        registry_repository.add_registry_entry(
            RegistryEntry(phone_number="5551234567", record_status='pending')
        )

        result = await registry_gateway.lookup(["5551234567"])

        assert result.active == set()

    async def test_any_failed_read_fails_lookup(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        registry_repository.fail_methods.add('find_litigators_by_phones')

        with pytest.raises(RegistryLookupError) as exc_info:
            await registry_gateway.lookup(["5551234567"])

        assert isinstance(exc_info.value.cause, RuntimeError)


# =============================================================================
# Test Class: TestProcessLeadsBatch
# =============================================================================

class TestProcessLeadsBatch:
    """process_leads_batch scores leads with a single gateway call."""

    async def test_single_gateway_call_for_many_leads(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        leads = [{'phone_number': f"(555) {i:03d}-{i:04d}"} for i in range(250)]

        processed = await process_leads_batch(leads, registry_gateway)

        assert len(processed) == 250
        assert registry_repository.read_calls() == 3

    async def test_all_invalid_makes_no_store_call(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        leads = [{'phone_number': '123'}, {'phone_number': ''}, {'phone_number': None}]

        processed = await process_leads_batch(leads, registry_gateway)

        assert registry_repository.read_calls() == 0
        for lead in processed:
            assert lead.risk_score == 0
            assert lead.risk_flags == [RiskFlag.INVALID_PHONE_NUMBER]
            assert lead.dnc_status == DncStatus.CAUTION

    async def test_empty_batch(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        assert await process_leads_batch([], registry_gateway) == []
        assert registry_repository.read_calls() == 0

    async def test_order_and_passthrough_fields_preserved(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        _seed_active(registry_repository, "5559876543")
        leads = [
            {'phone_number': '555-123-4567', 'first_name': 'Pat', 'lead_id': 7},
            {'phone_number': '1 (555) 987-6543', 'first_name': 'Sam', 'lead_id': 8},
            {'phone_number': 'n/a', 'first_name': 'Lee', 'lead_id': 9},
        ]

        processed = await process_leads_batch(leads, registry_gateway)

        assert [lead.phone_number for lead in processed] == ['5551234567', '5559876543', '']
        assert [lead.model_extra['lead_id'] for lead in processed] == [7, 8, 9]
        assert processed[0].model_extra['first_name'] == 'Pat'
        assert processed[1].dnc_status == DncStatus.BLOCKED
        assert processed[2].risk_flags == [RiskFlag.INVALID_PHONE_NUMBER]

    async def test_duplicate_phones_scored_identically(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        _seed_active(registry_repository, "5551234567")
        leads = [{'phone_number': '5551234567'}, {'phone_number': '(555) 123-4567'}]

        processed = await process_leads_batch(leads, registry_gateway)

        assert [lead.risk_score for lead in processed] == [60, 60]
        assert registry_repository.read_calls() == 3

    async def test_accepts_pydantic_leads(
        self,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        leads = [LeadInput(phone_number='555-123-4567', campaign='fall')]

        processed = await process_leads_batch(leads, registry_gateway)

        assert processed[0].phone_number == '5551234567'
        assert processed[0].model_extra['campaign'] == 'fall'

    async def test_lookup_failure_propagates(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        registry_repository.fail_methods.add('find_active_by_phones')

        with pytest.raises(RegistryLookupError):
            await process_leads_batch([{'phone_number': '5551234567'}], registry_gateway)


# =============================================================================
# Test Class: TestProcessLeadsInChunks
# =============================================================================

class TestProcessLeadsInChunks:
    """process_leads_in_chunks makes one gateway call per chunk."""

    async def test_one_lookup_per_chunk(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        leads = [{'phone_number': f"555{i:07d}", 'row': i} for i in range(25)]

        processed = await process_leads_in_chunks(leads, registry_gateway, chunk_size=10)

        assert len(processed) == 25
        assert [lead.model_extra['row'] for lead in processed] == list(range(25))
        # 3 chunks x 3 reads
        assert registry_repository.read_calls() == 9

    async def test_rejects_non_positive_chunk_size(
        self,
        registry_gateway: RegistryLookupGateway,
    ) -> None:
        with pytest.raises(ValueError):
            await process_leads_in_chunks([{'phone_number': '5551234567'}], registry_gateway, chunk_size=0)


# =============================================================================
# Test Class: TestEndToEndRiskCheck
# =============================================================================

class TestEndToEndRiskCheck:
    """Two leads, one on the federal list: 50% compliance."""

    async def test_two_lead_scenario(
        self,
        registry_repository: CountingRegistryRepository,
        registry_gateway: RegistryLookupGateway,
        sample_leads: List[Dict[str, Any]],
    ) -> None:
        _seed_active(registry_repository, "5551234567")

        processed = await process_leads_batch(sample_leads, registry_gateway)
        stats = calculate_batch_stats(processed)

        assert processed[0].risk_score == 60
        assert processed[0].risk_flags == [RiskFlag.FEDERAL_DNC]
        assert processed[0].dnc_status == DncStatus.BLOCKED
        assert processed[1].risk_score == 0
        assert processed[1].dnc_status == DncStatus.CLEAN

        assert stats.total == 2
        assert stats.blocked == 1
        assert stats.clean == 1
        assert stats.average_risk_score == 30
        assert stats.compliance_rate == 50
        assert stats.flag_counts == {'federal_dnc': 1}
        assert stats.area_codes == ['555']
