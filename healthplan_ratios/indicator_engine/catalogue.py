"""
Indicator catalogue and operator ranking.

Display metadata for the eleven ratios (name, unit, which direction is
better, reference target) and the ranking of a quarter's operators by one
of them.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from healthplan_ratios.exceptions import UnknownIndicatorError
from healthplan_ratios.indicator_engine.models import IndicatorRecord


@dataclass(frozen=True)
class IndicatorDefinition:
    """Metadata of one regulatory ratio."""
    key: str
    name: str
    unit: str
    higher_is_better: bool
    target: Optional[float] = None
    description: str = ""


INDICATOR_CATALOGUE: Sequence[IndicatorDefinition] = (
    IndicatorDefinition("mll", "Net Profit Margin", "%", True, 10,
                        "Net income over total revenue"),
    IndicatorDefinition("roe", "Return on Equity", "%", True, 15,
                        "Net income over equity"),
    IndicatorDefinition("dm", "Loss Ratio", "%", False, 70,
                        "Medical expenses over contribution revenue"),
    IndicatorDefinition("da", "Administrative Expenses", "%", False, 15,
                        "Administrative expenses over total revenue"),
    IndicatorDefinition("dc", "Commercial Expenses", "%", False, 5,
                        "Commercial expenses over total revenue"),
    IndicatorDefinition("dop", "Operating Expenses", "%", False, 85,
                        "Medical, administrative and commercial expenses over total revenue"),
    IndicatorDefinition("irf", "Financial Result", "%", True, None,
                        "Financial revenue minus financial expenses over total revenue"),
    IndicatorDefinition("lc", "Current Ratio", "", True, 1.2,
                        "Current assets over current liabilities"),
    IndicatorDefinition("ctcp", "Third-Party over Own Capital", "%", False, 80,
                        "Third-party capital over equity"),
    IndicatorDefinition("pmcr", "Average Collection Period", " dias", False, 30,
                        "Days to collect contributions receivable"),
    IndicatorDefinition("pmpe", "Average Event Payment Period", " dias", False, None,
                        "Days to pay events payable"),
)

_CATALOGUE_BY_KEY: Dict[str, IndicatorDefinition] = {d.key: d for d in INDICATOR_CATALOGUE}


def get_indicator_definition(key: str) -> IndicatorDefinition:
    """
    Look up a ratio by key.

    Raises:
        UnknownIndicatorError: If the key is not one of the eleven ratios.
    """
    try:
        return _CATALOGUE_BY_KEY[key]
    except KeyError:
        raise UnknownIndicatorError(key) from None


def meets_target(key: str, value: float) -> Optional[bool]:
    """Whether a value reaches the reference target (None when the ratio has none)."""
    definition = get_indicator_definition(key)
    if definition.target is None:
        return None
    if definition.higher_is_better:
        return value >= definition.target
    return value <= definition.target


@dataclass(frozen=True)
class RankingEntry:
    """Position of one operator in a ranking."""
    position: int
    operator_id: str
    value: float


def rank_records(records: Sequence[IndicatorRecord], key: str) -> List[RankingEntry]:
    """
    Rank a quarter's records by one ratio, best first.

    Values are compared rounded to two decimals; ties keep input order.

    Args:
        records: Indicator records of the same quarter.
        key: Ratio to rank by.

    Returns:
        Ranking entries, position 1 being the best.
    """
    definition = get_indicator_definition(key)
    scored = [(record.operator_id, round(getattr(record, key), 2)) for record in records]
    scored.sort(key=lambda item: item[1], reverse=definition.higher_is_better)

    return [
        RankingEntry(position=index + 1, operator_id=operator_id, value=value)
        for index, (operator_id, value) in enumerate(scored)
    ]
