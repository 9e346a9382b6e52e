"""
Consolidation of indicator records.

Fan-in across operators (period average) and across time (operator history),
plus the period-over-period variation shown next to each ratio.
"""
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from healthplan_ratios.indicator_engine.models import (
    INDICATOR_FIELDS,
    ConsolidatedRecord,
    IndicatorRecord,
    Period,
)

logger = structlog.get_logger(__name__)

# Decimal places kept by the consolidated average; day ratios are whole days
CONSOLIDATION_PRECISION: Dict[str, int] = {
    "mll": 1,
    "roe": 1,
    "dm": 1,
    "da": 1,
    "dc": 1,
    "dop": 1,
    "irf": 1,
    "lc": 2,
    "ctcp": 1,
}

DAY_FIELDS = ("pmcr", "pmpe")

HistoryUnit = Callable[[str, int, int], Optional[IndicatorRecord]]


def round_half_up(value: float, places: int) -> float:
    """
    Round the exact binary value of a float, halves away from zero.

    ``1.005`` is stored as ``1.00499999...`` and rounds to ``1.0`` at two places.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_days(value: float) -> int:
    """Round to whole days, halves toward positive infinity (-45.5 -> -45)."""
    return int(math.floor(value + 0.5))


def consolidate_average(records: Sequence[IndicatorRecord]) -> Optional[ConsolidatedRecord]:
    """
    Average each ratio independently across a quarter's records.

    Percentages keep one decimal place, the current ratio two, and the
    day-count ratios are rounded to whole days.

    Args:
        records: Indicator records of the same quarter.

    Returns:
        ConsolidatedRecord, or None when there is nothing to average.
    """
    if not records:
        return None

    count = len(records)
    first = records[0]
    averages: Dict[str, float] = {}

    for name in INDICATOR_FIELDS:
        mean = sum(getattr(record, name) or 0.0 for record in records) / count
        if name in DAY_FIELDS:
            averages[name] = round_days(mean)
        else:
            averages[name] = round_half_up(mean, CONSOLIDATION_PRECISION[name])

    consolidated = ConsolidatedRecord(
        year=first.year,
        quarter=first.quarter,
        operator_count=count,
        mll=averages["mll"],
        roe=averages["roe"],
        dm=averages["dm"],
        da=averages["da"],
        dc=averages["dc"],
        dop=averages["dop"],
        irf=averages["irf"],
        lc=averages["lc"],
        ctcp=averages["ctcp"],
        pmcr=averages["pmcr"],
        pmpe=averages["pmpe"],
    )

    logger.info(
        "period_consolidated",
        year=first.year,
        quarter=first.quarter,
        operators=count,
        mll=consolidated.mll,
        roe=consolidated.roe,
        dm=consolidated.dm,
    )
    return consolidated


def candidate_periods(latest: Period, lookback: int) -> List[Period]:
    """
    List the quarters visited when building a history, most recent first.

    Args:
        latest: Most recent candidate quarter.
        lookback: Number of quarters to visit (including ``latest``).

    Returns:
        ``lookback`` consecutive quarters ending at ``latest``, newest first.
    """
    periods: List[Period] = []
    period = latest
    for _ in range(max(0, lookback)):
        periods.append(period)
        period = period.previous()
    return periods


def build_history(
    operator_id: str,
    candidates: Iterable[Period],
    calculate: HistoryUnit,
) -> List[IndicatorRecord]:
    """
    Collect one operator's records over a fixed set of candidate quarters.

    Quarters without a result, or whose calculation raises, are skipped.

    Args:
        operator_id: Operator whose history is built.
        candidates: Quarters to visit, in lookup order.
        calculate: Calculates the operator's record for a quarter.

    Returns:
        Records sorted ascending by (year, quarter).
    """
    history: List[IndicatorRecord] = []

    for period in candidates:
        try:
            record = calculate(operator_id, period.year, period.quarter)
        except Exception as e:
            logger.info(
                "history_period_unavailable",
                operator_id=operator_id,
                period=period.label,
                error=str(e),
            )
            continue
        if record is not None:
            history.append(record)

    history.sort(key=lambda record: (record.year, record.quarter))

    logger.info("history_built", operator_id=operator_id, periods=len(history))
    return history


def variation(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """
    Percentage change from ``previous`` to ``current``.

    Returns:
        (current - previous) / previous * 100, or None without a usable previous value.
    """
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def compare_records(
    current: IndicatorRecord, previous: Optional[IndicatorRecord]
) -> Dict[str, Optional[float]]:
    """Variation of every ratio of ``current`` against ``previous``."""
    return {
        name: variation(
            getattr(current, name),
            getattr(previous, name) if previous is not None else None,
        )
        for name in INDICATOR_FIELDS
    }
