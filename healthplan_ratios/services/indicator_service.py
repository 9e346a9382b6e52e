"""
Indicator service.

Facade over the indicator engine and a ledger data source: one operator in
one quarter, every operator in a quarter, the quarter average, an operator's
history, rankings and previous-quarter comparisons.
"""
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

import structlog

from healthplan_ratios.config import Settings, get_settings
from healthplan_ratios.exceptions import DataSourceError
from healthplan_ratios.indicator_engine import consolidation
from healthplan_ratios.indicator_engine.calculator import compute_indicators
from healthplan_ratios.indicator_engine.catalogue import (
    RankingEntry,
    get_indicator_definition,
    rank_records,
)
from healthplan_ratios.indicator_engine.models import (
    ConsolidatedRecord,
    IndicatorRecord,
    LedgerSnapshot,
    OperatorInfo,
    Period,
    PeriodResult,
)
from healthplan_ratios.indicator_engine.period_processor import PeriodProcessor
from healthplan_ratios.services.data_source import LedgerDataSource

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IndicatorComparison:
    """An operator's record next to the one of the previous quarter."""
    current: IndicatorRecord
    previous: Optional[IndicatorRecord]
    variations: Dict[str, Optional[float]]


class IndicatorService:
    """
    Computes regulatory indicators from a ledger data source.

    Usage:
        service = IndicatorService(SqlAlchemyDataSource(SessionLocal))
        record = service.calculate_indicators("123456", 2024, 4)
        result = service.process_period(2024, 4)
    """

    def __init__(self, data_source: LedgerDataSource, settings: Optional[Settings] = None):
        self.data_source = data_source
        self.settings = settings or get_settings()

    # =========================================================================
    # Single operator
    # =========================================================================

    def calculate_indicators(self, operator_id: str, year: int, quarter: int) -> Optional[IndicatorRecord]:
        """
        Calculate the eleven ratios of one operator in one quarter.

        Args:
            operator_id: Operator registration number.
            year: Reporting year.
            quarter: Reporting quarter (1-4).

        Returns:
            IndicatorRecord, or None when the operator has no positive revenue.

        Raises:
            InvalidPeriodError: If the quarter is outside 1..4.
            DataSourceError: If the ledger entries cannot be fetched.
        """
        period = Period(year, quarter)
        entries = self.data_source.fetch_ledger_entries(
            operator_id=operator_id, year=period.year, quarter=period.quarter
        )
        record = compute_indicators(operator_id, period.year, period.quarter, entries)
        if record is None:
            return None

        covered = self._covered_individuals(operator_id, period)
        if covered is not None:
            record = replace(record, covered_individuals=covered)
        return record

    def _covered_individuals(self, operator_id: str, period: Period) -> Optional[int]:
        # Optional enrichment; a lookup failure never drops the record
        try:
            return self.data_source.fetch_covered_individuals(operator_id, period.year, period.quarter)
        except Exception as e:
            logger.warning(
                "covered_individuals_unavailable",
                operator_id=operator_id,
                year=period.year,
                quarter=period.quarter,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def list_operators(self) -> List[OperatorInfo]:
        """Return the active operator roster."""
        return self.data_source.fetch_active_operators()

    def latest_snapshot(self) -> Optional[LedgerSnapshot]:
        """Return metadata of the most recent ledger load."""
        return self.data_source.fetch_latest_snapshot()

    # =========================================================================
    # Whole period
    # =========================================================================

    def _processor(self) -> PeriodProcessor:
        return PeriodProcessor(
            roster_provider=self.data_source.fetch_active_operators,
            unit=self.calculate_indicators,
            max_concurrency=self.settings.period_max_concurrency,
        )

    def process_period(self, year: int, quarter: int) -> PeriodResult:
        """Run every active operator of a quarter and keep the exclusion counts."""
        return self._processor().process(year, quarter)

    async def process_period_async(self, year: int, quarter: int) -> PeriodResult:
        """Concurrent variant of process_period, bounded by period_max_concurrency."""
        return await self._processor().process_async(year, quarter)

    def calculate_period(self, year: int, quarter: int) -> List[IndicatorRecord]:
        """
        Calculate the indicators of every active operator in a quarter.

        Returns:
            Records of the operators with enough data, in roster order.

        Raises:
            OperatorRosterUnavailableError: If the roster cannot be listed.
        """
        return self.process_period(year, quarter).records

    def consolidate_average(self, records: Sequence[IndicatorRecord]) -> Optional[ConsolidatedRecord]:
        """Average a quarter's records; None for an empty input."""
        return consolidation.consolidate_average(records)

    def consolidate_period(self, year: int, quarter: int) -> Optional[ConsolidatedRecord]:
        """Calculate a quarter and average it."""
        return self.consolidate_average(self.calculate_period(year, quarter))

    def rank_operators(self, year: int, quarter: int, indicator: str) -> List[RankingEntry]:
        """
        Rank a quarter's operators by one ratio, best first.

        Raises:
            UnknownIndicatorError: If ``indicator`` is not one of the eleven ratios.
        """
        get_indicator_definition(indicator)
        return rank_records(self.calculate_period(year, quarter), indicator)

    # =========================================================================
    # Across time
    # =========================================================================

    def history_candidates(self) -> List[Period]:
        """Quarters visited by build_history, most recent first."""
        latest = Period(self.settings.history_latest_year, self.settings.history_latest_quarter)
        return consolidation.candidate_periods(latest, self.settings.history_lookback)

    def build_history(self, operator_id: str) -> List[IndicatorRecord]:
        """
        Collect an operator's records over the configured lookback window.

        Returns:
            Records sorted ascending by (year, quarter); quarters without data are absent.
        """
        return consolidation.build_history(
            operator_id, self.history_candidates(), self.calculate_indicators
        )

    def compare_with_previous(
        self, operator_id: str, year: int, quarter: int
    ) -> Optional[IndicatorComparison]:
        """
        Compare an operator's quarter against the immediately previous quarter.

        Returns:
            IndicatorComparison, or None when the current quarter has no record.
        """
        current = self.calculate_indicators(operator_id, year, quarter)
        if current is None:
            return None

        previous_period = current.period.previous()
        try:
            previous = self.calculate_indicators(
                operator_id, previous_period.year, previous_period.quarter
            )
        except DataSourceError as e:
            logger.warning(
                "previous_period_unavailable",
                operator_id=operator_id,
                period=previous_period.label,
                error=e.message,
            )
            previous = None

        return IndicatorComparison(
            current=current,
            previous=previous,
            variations=consolidation.compare_records(current, previous),
        )
