"""
Indicator Engine - Regulatory ratios for health-plan operators.

Turns free-text ledger entries into the eleven quarterly ratios:

1. Normalize descriptions (case, accents, punctuation, whitespace)
2. Classify against an ordered pattern table - first match wins
3. Sum closing balances per category
4. Compute ratios with zero-safe denominators
5. Fan out over operators, fan in as averages and histories
"""

from healthplan_ratios.indicator_engine.calculator import compute_indicators
from healthplan_ratios.indicator_engine.classification import classify_description
from healthplan_ratios.indicator_engine.consolidation import build_history, consolidate_average
from healthplan_ratios.indicator_engine.models import (
    Category,
    ConsolidatedRecord,
    IndicatorRecord,
    LedgerEntry,
    Period,
)
from healthplan_ratios.indicator_engine.normalization import normalize_text
from healthplan_ratios.indicator_engine.period_processor import PeriodProcessor

__all__ = [
    "normalize_text",
    "classify_description",
    "compute_indicators",
    "consolidate_average",
    "build_history",
    "PeriodProcessor",
    "Category",
    "ConsolidatedRecord",
    "IndicatorRecord",
    "LedgerEntry",
    "Period",
]
