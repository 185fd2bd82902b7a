"""
Batch Statistics Service

Reduces a list of processed leads to summary counts and rates for the risk
check response and dashboards.

Metrics:
- total, clean, caution, blocked: lead counts per status
- average_risk_score: mean score rounded half up
- compliance_rate: clean / total * 100 rounded half up; 100 for an empty batch
- flag_counts: occurrences of each risk flag
- area_codes: distinct first three digits of the phone numbers, first seen order
"""

import math
from typing import Dict, List, Sequence

import pandas as pd

from dnc_backend.models.enums import DncStatus
from dnc_backend.models.schemas import BatchStats, ProcessedLead


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Python's round() uses banker's rounding (round(2.5) == 2); percentages
    and averages shown to users round 2.5 to 3.
    """
    return int(math.floor(value + 0.5))


def calculate_batch_stats(leads: Sequence[ProcessedLead]) -> BatchStats:
    """
    Summarize a batch of processed leads.

    Args:
        leads: Processed leads from the batch orchestrator.

    Returns:
        BatchStats: Counts, rates, flag histogram and area codes. An empty
            batch reports compliance_rate 100 and zero everywhere else.
    """
    if not leads:
        return BatchStats()

    frame = pd.DataFrame({
        'phone_number': [lead.phone_number for lead in leads],
        'risk_score': [lead.risk_score for lead in leads],
        'dnc_status': [DncStatus(lead.dnc_status).value for lead in leads],
    })

    total = len(frame)
    status_counts = frame['dnc_status'].value_counts()
    clean = int(status_counts.get(DncStatus.CLEAN.value, 0))
    caution = int(status_counts.get(DncStatus.CAUTION.value, 0))
    blocked = int(status_counts.get(DncStatus.BLOCKED.value, 0))

    flags = pd.Series(
        [getattr(flag, 'value', flag) for lead in leads for flag in lead.risk_flags],
        dtype=object,
    )
    flag_counts: Dict[str, int] = {str(flag): int(count) for flag, count in flags.value_counts().items()}

    prefixes = frame['phone_number'].str[:3]
    area_codes: List[str] = [code for code in prefixes.unique().tolist() if code]

    return BatchStats(
        total=total,
        clean=clean,
        caution=caution,
        blocked=blocked,
        average_risk_score=round_half_up(float(frame['risk_score'].mean())),
        compliance_rate=round_half_up(clean / total * 100),
        flag_counts=flag_counts,
        area_codes=area_codes,
    )


__all__ = [
    'round_half_up',
    'calculate_batch_stats',
]
