"""
Category classifier for ledger descriptions.

First-match substring classification against the ordered pattern table.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from healthplan_ratios.indicator_engine.models import Category
from healthplan_ratios.indicator_engine.normalization import normalize_text
from healthplan_ratios.indicator_engine.patterns import NORMALIZED_PATTERNS


@dataclass(frozen=True)
class ClassificationResult:
    """Category assigned to a description and the pattern that decided it."""

    description: str
    normalized: str
    category: Category
    pattern: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.category != Category.UNCATEGORIZED


class CategoryClassifier:
    """
    Deterministic classifier over an ordered (category, patterns) table.

    Categories are visited in declared order and, inside each, patterns in
    declared order. The first pattern contained in the normalized description
    decides the category; there is no longest-match or word-boundary
    preference, so short patterns match inside longer words.
    """

    def __init__(
        self,
        table: Tuple[Tuple[Category, Tuple[str, ...]], ...] = NORMALIZED_PATTERNS,
    ):
        """
        Initialize the classifier.

        Args:
            table: Ordered pairs of category and normalized patterns.
        """
        self._table = table

    def classify(self, description: Optional[str]) -> ClassificationResult:
        """
        Classify a raw description.

        Args:
            description: Free-text ledger description.

        Returns:
            ClassificationResult; category is UNCATEGORIZED when nothing matches.
        """
        normalized = normalize_text(description)

        if normalized:
            for category, patterns in self._table:
                for pattern in patterns:
                    if pattern in normalized:
                        return ClassificationResult(
                            description=description or "",
                            normalized=normalized,
                            category=category,
                            pattern=pattern,
                        )

        return ClassificationResult(
            description=description or "",
            normalized=normalized,
            category=Category.UNCATEGORIZED,
        )

    def classify_batch(self, descriptions: Iterable[Optional[str]]) -> List[ClassificationResult]:
        """Classify multiple descriptions."""
        return [self.classify(description) for description in descriptions]


# Singleton instance
_classifier_instance: Optional[CategoryClassifier] = None


def get_category_classifier() -> CategoryClassifier:
    """Get singleton CategoryClassifier instance."""
    global _classifier_instance
    if _classifier_instance is None:
        _classifier_instance = CategoryClassifier()
    return _classifier_instance


def classify_description(description: Optional[str]) -> Category:
    """Return the category of a raw description."""
    return get_category_classifier().classify(description).category
