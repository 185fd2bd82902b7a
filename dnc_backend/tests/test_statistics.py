"""
Pytest test module for batch statistics and CSV export of scored leads.

Test Classes:
- TestRoundHalfUp: Half-up rounding used for rates and averages
- TestCalculateBatchStats: Counts, rates, flag histogram, area codes
- TestLeadExport: DataFrame/CSV rendering
"""

import io
from typing import List, Optional

import pandas as pd
import pytest

from dnc_backend.models.enums import DncStatus, RiskFlag
from dnc_backend.models.schemas import ProcessedLead
from dnc_backend.services.lead_export import (
    RISK_COLUMNS,
    processed_leads_to_csv,
    processed_leads_to_frame,
)
from dnc_backend.services.statistics import calculate_batch_stats, round_half_up


def _lead(
    phone: str,
    score: int,
    status: DncStatus,
    flags: Optional[List[RiskFlag]] = None,
    **extra,
) -> ProcessedLead:
    return ProcessedLead(
        phone_number=phone,
        risk_score=score,
        risk_flags=flags or [],
        dnc_status=status,
        **extra,
    )


class TestRoundHalfUp:
    """Halves round up, unlike Python's round()."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (2.4999, 2), (0.5, 1), (33.333, 33), (66.667, 67), (0.0, 0)],
    )
    def test_rounding(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestCalculateBatchStats:
    """calculate_batch_stats summarizes processed leads."""

    def test_empty_batch(self) -> None:
        stats = calculate_batch_stats([])

        assert stats.total == 0
        assert stats.clean == 0
        assert stats.caution == 0
        assert stats.blocked == 0
        assert stats.average_risk_score == 0
        assert stats.compliance_rate == 100
        assert stats.flag_counts == {}
        assert stats.area_codes == []

    def test_counts_and_rates(self) -> None:
        leads = [
            _lead('8015551234', 60, DncStatus.BLOCKED, [RiskFlag.FEDERAL_DNC]),
            _lead('8015559999', 25, DncStatus.CAUTION, [RiskFlag.KNOWN_LITIGATOR]),
            _lead('3855550000', 0, DncStatus.CLEAN),
        ]

        stats = calculate_batch_stats(leads)

        assert stats.total == 3
        assert stats.blocked == 1
        assert stats.caution == 1
        assert stats.clean == 1
        # 85 / 3 = 28.33
        assert stats.average_risk_score == 28
        # 1 / 3 = 33.33%
        assert stats.compliance_rate == 33

    def test_average_rounds_half_up(self) -> None:
        leads = [
            _lead('8015551234', 20, DncStatus.CLEAN, [RiskFlag.RECENTLY_REMOVED_DNC]),
            _lead('8015551235', 35, DncStatus.CAUTION,
                  [RiskFlag.RECENTLY_REMOVED_DNC, RiskFlag.PATTERN_ADD_REMOVE]),
        ]

        stats = calculate_batch_stats(leads)

        # 55 / 2 = 27.5
        assert stats.average_risk_score == 28
        assert stats.compliance_rate == 50

    def test_flag_histogram(self) -> None:
        leads = [
            _lead('8015551234', 95, DncStatus.BLOCKED,
                  [RiskFlag.FEDERAL_DNC, RiskFlag.KNOWN_LITIGATOR, RiskFlag.SERIAL_LITIGATOR]),
            _lead('8015551235', 60, DncStatus.BLOCKED, [RiskFlag.FEDERAL_DNC]),
            _lead('123', 0, DncStatus.CAUTION, [RiskFlag.INVALID_PHONE_NUMBER]),
        ]

        stats = calculate_batch_stats(leads)

        assert stats.flag_counts == {
            'federal_dnc': 2,
            'known_litigator': 1,
            'serial_litigator': 1,
            'invalid_phone_number': 1,
        }

    def test_area_codes_distinct_in_first_seen_order(self) -> None:
        leads = [
            _lead('8015551234', 0, DncStatus.CLEAN),
            _lead('3855551234', 0, DncStatus.CLEAN),
            _lead('8015550000', 0, DncStatus.CLEAN),
            _lead('', 0, DncStatus.CAUTION, [RiskFlag.INVALID_PHONE_NUMBER]),
        ]

        stats = calculate_batch_stats(leads)

        assert stats.area_codes == ['801', '385']


class TestLeadExport:
    """Processed leads render to CSV with the risk columns last."""

    def test_risk_columns_last(self) -> None:
        leads = [
            _lead('8015551234', 60, DncStatus.BLOCKED, [RiskFlag.FEDERAL_DNC], first_name='Pat'),
            _lead('3855551234', 0, DncStatus.CLEAN, email='sam@example.com'),
        ]

        frame = processed_leads_to_frame(leads)

        assert list(frame.columns) == ['first_name', 'email'] + RISK_COLUMNS

    def test_flags_joined_in_one_cell(self) -> None:
        leads = [
            _lead('8015551234', 95, DncStatus.BLOCKED,
                  [RiskFlag.FEDERAL_DNC, RiskFlag.KNOWN_LITIGATOR, RiskFlag.SERIAL_LITIGATOR]),
        ]

        frame = pd.read_csv(io.StringIO(processed_leads_to_csv(leads)), dtype=str)

        assert frame.loc[0, 'risk_flags'] == 'federal_dnc; known_litigator; serial_litigator'
        assert frame.loc[0, 'dnc_status'] == 'blocked'
        assert frame.loc[0, 'phone_number'] == '8015551234'

    def test_empty_export_has_header_only(self) -> None:
        csv_text = processed_leads_to_csv([])

        assert csv_text.strip() == ','.join(RISK_COLUMNS)
