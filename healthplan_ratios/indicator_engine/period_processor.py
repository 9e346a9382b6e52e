"""
Period processor.

Fans one quarter out over the operator roster: one unit of work (fetch entries
and calculate) per operator. Units are isolated: an operator without data is
counted as excluded, an operator whose unit raises is recorded as a failure,
and neither stops the remaining operators. Only a roster that cannot be listed
fails the whole period.
"""
import asyncio
import time
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from healthplan_ratios.exceptions import OperatorRosterUnavailableError
from healthplan_ratios.indicator_engine.models import (
    IndicatorRecord,
    OperatorFailure,
    OperatorInfo,
    Period,
    PeriodResult,
)

logger = structlog.get_logger(__name__)

RosterProvider = Callable[[], Sequence[OperatorInfo]]
IndicatorUnit = Callable[[str, int, int], Optional[IndicatorRecord]]

# (record, failure) pair produced by one unit; both None means "no result"
_UnitOutcome = Tuple[Optional[IndicatorRecord], Optional[OperatorFailure]]


class PeriodProcessor:
    """
    Runs the indicator calculation for every active operator of a quarter.

    Features:
    - Sequential processing with per-operator progress logging
    - Optional concurrent processing with bounded concurrency
    - Error isolation (one failing operator doesn't stop the period)
    - Output always in roster order
    """

    DEFAULT_CONCURRENCY = 1

    def __init__(
        self,
        roster_provider: RosterProvider,
        unit: IndicatorUnit,
        max_concurrency: int = DEFAULT_CONCURRENCY,
    ):
        """
        Initialize the period processor.

        Args:
            roster_provider: Returns the active operators, in roster order.
            unit: Calculates one operator's indicators for a quarter.
            max_concurrency: Units run at once by process_async.
        """
        self._roster_provider = roster_provider
        self._unit = unit
        self._max_concurrency = max(1, max_concurrency)

    def _load_roster(self) -> List[OperatorInfo]:
        try:
            return list(self._roster_provider())
        except OperatorRosterUnavailableError:
            raise
        except Exception as e:
            logger.error("operator_roster_unavailable", error=str(e), error_type=type(e).__name__)
            raise OperatorRosterUnavailableError(str(e)) from e

    def _run_unit(self, operator: OperatorInfo, period: Period, position: int, total: int) -> _UnitOutcome:
        logger.info(
            "operator_processing",
            position=position,
            total=total,
            operator_id=operator.operator_id,
            operator_name=operator.display_name,
        )
        try:
            record = self._unit(operator.operator_id, period.year, period.quarter)
        except Exception as e:
            logger.warning(
                "operator_failed",
                operator_id=operator.operator_id,
                year=period.year,
                quarter=period.quarter,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None, OperatorFailure(
                operator_id=operator.operator_id,
                error=str(e),
                error_type=type(e).__name__,
            )

        if record is None:
            logger.info("operator_without_data", operator_id=operator.operator_id)
        return record, None

    def _collect(
        self,
        period: Period,
        operator_count: int,
        outcomes: List[_UnitOutcome],
        start_time: float,
    ) -> PeriodResult:
        result = PeriodResult(year=period.year, quarter=period.quarter, operator_count=operator_count)

        for record, failure in outcomes:
            if record is not None:
                result.records.append(record)
            else:
                result.excluded += 1
                if failure is not None:
                    result.failures.append(failure)

        result.processing_time_ms = (time.time() - start_time) * 1000

        logger.info(
            "period_processed",
            year=period.year,
            quarter=period.quarter,
            operators=operator_count,
            included=result.included,
            excluded=result.excluded,
            failed=result.failed,
            time_ms=round(result.processing_time_ms, 2),
        )
        return result

    def process(self, year: int, quarter: int) -> PeriodResult:
        """
        Process every operator of a quarter, one after the other.

        Args:
            year: Reporting year.
            quarter: Reporting quarter (1-4).

        Returns:
            PeriodResult with records in roster order and exclusion counts.

        Raises:
            OperatorRosterUnavailableError: If the roster cannot be listed.
        """
        start_time = time.time()
        period = Period(year, quarter)
        roster = self._load_roster()
        total = len(roster)

        logger.info("period_started", year=year, quarter=quarter, operators=total)

        outcomes = [
            self._run_unit(operator, period, index + 1, total)
            for index, operator in enumerate(roster)
        ]
        return self._collect(period, total, outcomes, start_time)

    async def process_async(self, year: int, quarter: int) -> PeriodResult:
        """
        Process every operator of a quarter with bounded concurrency.

        Units run in the default thread executor; results are gathered and
        kept in roster order regardless of completion order.

        Raises:
            OperatorRosterUnavailableError: If the roster cannot be listed.
        """
        start_time = time.time()
        period = Period(year, quarter)
        loop = asyncio.get_running_loop()
        roster = await loop.run_in_executor(None, self._load_roster)
        total = len(roster)

        logger.info(
            "period_started",
            year=year,
            quarter=quarter,
            operators=total,
            concurrency=self._max_concurrency,
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(operator: OperatorInfo, position: int) -> _UnitOutcome:
            async with semaphore:
                return await loop.run_in_executor(
                    None, self._run_unit, operator, period, position, total
                )

        outcomes = await asyncio.gather(
            *(run(operator, index + 1) for index, operator in enumerate(roster))
        )
        return self._collect(period, total, list(outcomes), start_time)
