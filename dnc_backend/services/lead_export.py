"""
Processed Lead CSV Export

Renders scored leads as CSV for download. Pass-through lead fields come
first in the order they were first seen, followed by the risk columns.
Risk flags are joined with '; ' into one cell.
"""

from typing import Any, Dict, List, Sequence

import pandas as pd

from dnc_backend.models.schemas import ProcessedLead


RISK_COLUMNS: List[str] = ['phone_number', 'risk_score', 'risk_flags', 'dnc_status']


def _export_row(lead: ProcessedLead) -> Dict[str, Any]:
    row = lead.model_dump(mode='json')
    row['risk_flags'] = '; '.join(row.get('risk_flags') or [])
    return row


def processed_leads_to_frame(leads: Sequence[ProcessedLead]) -> pd.DataFrame:
    """
    Build a DataFrame of processed leads with the risk columns last.

    Args:
        leads: Processed leads.

    Returns:
        pd.DataFrame: One row per lead.
    """
    rows = [_export_row(lead) for lead in leads]
    if not rows:
        return pd.DataFrame(columns=RISK_COLUMNS)

    extra_columns: List[str] = []
    for row in rows:
        for column in row:
            if column not in RISK_COLUMNS and column not in extra_columns:
                extra_columns.append(column)

    return pd.DataFrame(rows, columns=extra_columns + RISK_COLUMNS)


def processed_leads_to_csv(leads: Sequence[ProcessedLead]) -> str:
    """Render processed leads as CSV text with a header row."""
    return processed_leads_to_frame(leads).to_csv(index=False)


__all__ = [
    'RISK_COLUMNS',
    'processed_leads_to_frame',
    'processed_leads_to_csv',
]
