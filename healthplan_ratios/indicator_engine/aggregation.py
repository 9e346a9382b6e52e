"""
Per-category aggregation of ledger closing balances.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

import structlog

from healthplan_ratios.indicator_engine.classification import get_category_classifier
from healthplan_ratios.indicator_engine.models import Category, LedgerEntry

logger = structlog.get_logger(__name__)


@dataclass
class CategoryTotals:
    """Closing-balance sums, entry counts and leftovers for one entry set."""

    totals: Dict[Category, float] = field(
        default_factory=lambda: {category: 0.0 for category in Category}
    )
    counts: Dict[Category, int] = field(
        default_factory=lambda: {category: 0 for category in Category}
    )
    uncategorized: List[str] = field(default_factory=list)

    def __getitem__(self, category: Category) -> float:
        return self.totals[category]

    @property
    def matched_count(self) -> int:
        return sum(
            count for category, count in self.counts.items()
            if category != Category.UNCATEGORIZED
        )


def sum_category(entries: Iterable[LedgerEntry], category: Category) -> float:
    """
    Sum the closing balance of every entry classified into a category.

    Entries that match no pattern contribute zero. Negative balances are
    summed as-is.

    Args:
        entries: Ledger entries of one operator and one period.
        category: Target category.

    Returns:
        Sum of closing balances (0.0 when nothing matches).
    """
    classifier = get_category_classifier()
    return sum(
        (entry.closing_balance for entry in entries
         if classifier.classify(entry.description).category == category),
        0.0,
    )


def aggregate_categories(entries: Iterable[LedgerEntry]) -> CategoryTotals:
    """
    Sum closing balances for every category in a single pass.

    Each entry is classified once; ``result[category]`` equals
    ``sum_category(entries, category)``.

    Args:
        entries: Ledger entries of one operator and one period.

    Returns:
        CategoryTotals with sums, counts and uncategorized descriptions.
    """
    classifier = get_category_classifier()
    result = CategoryTotals()

    for entry in entries:
        category = classifier.classify(entry.description).category
        result.totals[category] += entry.closing_balance
        result.counts[category] += 1
        if category == Category.UNCATEGORIZED:
            result.uncategorized.append(entry.description)

    logger.debug(
        "categories_aggregated",
        matched=result.matched_count,
        uncategorized=len(result.uncategorized),
    )
    return result
