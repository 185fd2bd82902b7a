"""
Pytest test module for the risk scorer.

Covers point weights, flag order, status thresholds and the invalid-phone
short circuit.

Test Classes:
- TestScorePhone: Scoring of individual registry matches
- TestClassifyScore: Status thresholds
- TestSerialLitigator: Serial litigator criteria
"""

import pytest

from dnc_backend.models.enums import DncStatus, RiskFlag
from dnc_backend.models.schemas import LitigatorInfo
from dnc_backend.services.risk_scoring import (
    classify_score,
    is_serial_litigator,
    score_phone,
)


PHONE = "5551234567"


class TestScorePhone:
    """score_phone adds points per registry match, in fixed flag order."""

    def test_invalid_phone_short_circuits(self) -> None:
        assessment = score_phone(
            "555123",
            is_active_dnc=True,
            deleted_cycle_count=3,
            litigator=LitigatorInfo(case_count=10),
        )

        assert assessment.score == 0
        assert assessment.flags == [RiskFlag.INVALID_PHONE_NUMBER]
        assert assessment.status == DncStatus.CAUTION

    def test_no_matches_is_clean(self) -> None:
        assessment = score_phone(PHONE, is_active_dnc=False)

        assert assessment.score == 0
        assert assessment.flags == []
        assert assessment.status == DncStatus.CLEAN

    def test_federal_dnc_alone_is_blocked(self) -> None:
        assessment = score_phone(PHONE, is_active_dnc=True)

        assert assessment.score == 60
        assert assessment.flags == [RiskFlag.FEDERAL_DNC]
        assert assessment.status == DncStatus.BLOCKED

    def test_single_removal_is_clean_at_twenty(self) -> None:
        assessment = score_phone(PHONE, is_active_dnc=False, deleted_cycle_count=1)

        assert assessment.score == 20
        assert assessment.flags == [RiskFlag.RECENTLY_REMOVED_DNC]
        assert assessment.status == DncStatus.CLEAN

    def test_repeated_removal_adds_pattern_flag(self) -> None:
        assessment = score_phone(PHONE, is_active_dnc=False, deleted_cycle_count=2)

        assert assessment.score == 35
        assert assessment.flags == [RiskFlag.RECENTLY_REMOVED_DNC, RiskFlag.PATTERN_ADD_REMOVE]
        assert assessment.status == DncStatus.CAUTION

    def test_known_litigator(self) -> None:
        assessment = score_phone(
            PHONE,
            is_active_dnc=False,
            litigator=LitigatorInfo(case_count=2, risk_level="medium"),
        )

        assert assessment.score == 25
        assert assessment.flags == [RiskFlag.KNOWN_LITIGATOR]
        assert assessment.status == DncStatus.CAUTION

    def test_all_matches_in_fixed_order(self) -> None:
        assessment = score_phone(
            PHONE,
            is_active_dnc=True,
            deleted_cycle_count=4,
            litigator=LitigatorInfo(case_count=12, risk_level="high"),
        )

        assert assessment.score == 60 + 20 + 15 + 25 + 10
        assert assessment.flags == [
            RiskFlag.FEDERAL_DNC,
            RiskFlag.RECENTLY_REMOVED_DNC,
            RiskFlag.PATTERN_ADD_REMOVE,
            RiskFlag.KNOWN_LITIGATOR,
            RiskFlag.SERIAL_LITIGATOR,
        ]
        assert assessment.status == DncStatus.BLOCKED

    def test_cycle_count_of_zero_still_counts_as_removed(self) -> None:
        assessment = score_phone(PHONE, is_active_dnc=False, deleted_cycle_count=0)

        assert assessment.flags == [RiskFlag.RECENTLY_REMOVED_DNC]


class TestClassifyScore:
    """Status thresholds: >= 60 blocked, > 20 caution, otherwise clean."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, DncStatus.CLEAN),
            (20, DncStatus.CLEAN),
            (21, DncStatus.CAUTION),
            (59, DncStatus.CAUTION),
            (60, DncStatus.BLOCKED),
            (130, DncStatus.BLOCKED),
        ],
    )
    def test_thresholds(self, score: int, expected: DncStatus) -> None:
        assert classify_score(score) == expected


class TestSerialLitigator:
    """More than 5 cases or a critical risk level."""

    def test_five_cases_not_serial(self) -> None:
        assert is_serial_litigator(LitigatorInfo(case_count=5, risk_level="high")) is False

    def test_six_cases_serial(self) -> None:
        assert is_serial_litigator(LitigatorInfo(case_count=6)) is True

    def test_critical_risk_level_serial(self) -> None:
        assert is_serial_litigator(LitigatorInfo(case_count=1, risk_level="critical")) is True

    def test_unknown_risk_level_ignored(self) -> None:
        assert is_serial_litigator(LitigatorInfo(case_count=1, risk_level="extreme")) is False
