"""
Tests for the period processor.

Tests roster fan-out, exclusion of operators without data, failure isolation
and ordering of the sequential and concurrent paths.
"""
import threading
import time

import pytest

from healthplan_ratios.exceptions import InvalidPeriodError, OperatorRosterUnavailableError
from healthplan_ratios.indicator_engine.models import IndicatorRecord, OperatorInfo
from healthplan_ratios.indicator_engine.period_processor import PeriodProcessor


def make_record(operator_id, year=2024, quarter=4, mll=10.0):
    return IndicatorRecord(
        operator_id=operator_id,
        year=year,
        quarter=quarter,
        mll=mll, roe=0.0, dm=0.0, da=0.0, dc=0.0, dop=0.0,
        irf=0.0, lc=0.0, ctcp=0.0, pmcr=0.0, pmpe=0.0,
    )


ROSTER = [OperatorInfo("A001", "Alfa"), OperatorInfo("B002", "Beta"), OperatorInfo("C003", "Gama")]


class TestSequentialProcessing:
    """Tests for PeriodProcessor.process."""

    def test_all_operators_included(self):
        """Test every operator with a record is included in roster order."""
        processor = PeriodProcessor(lambda: ROSTER, lambda op, y, q: make_record(op, y, q))

        result = processor.process(2024, 4)

        assert [r.operator_id for r in result.records] == ["A001", "B002", "C003"]
        assert result.included == 3
        assert result.excluded == 0
        assert result.operator_count == 3

    def test_operator_without_data_excluded(self):
        """Test an operator whose unit returns no result is excluded, not failed."""
        def unit(operator_id, year, quarter):
            return None if operator_id == "B002" else make_record(operator_id)

        result = PeriodProcessor(lambda: ROSTER, unit).process(2024, 4)

        assert [r.operator_id for r in result.records] == ["A001", "C003"]
        assert result.excluded == 1
        assert result.failed == 0

    def test_failing_operator_isolated(self):
        """Test one raising unit does not stop the others."""
        def unit(operator_id, year, quarter):
            if operator_id == "A001":
                raise ConnectionError("ledger timeout")
            return make_record(operator_id)

        result = PeriodProcessor(lambda: ROSTER, unit).process(2024, 4)

        assert [r.operator_id for r in result.records] == ["B002", "C003"]
        assert result.excluded == 1
        assert result.failed == 1
        failure = result.failures[0]
        assert failure.operator_id == "A001"
        assert failure.error == "ledger timeout"
        assert failure.error_type == "ConnectionError"

    def test_unit_receives_period(self):
        """Test each unit is called with the operator and the requested quarter."""
        calls = []

        def unit(operator_id, year, quarter):
            calls.append((operator_id, year, quarter))
            return None

        PeriodProcessor(lambda: ROSTER[:1], unit).process(2023, 2)

        assert calls == [("A001", 2023, 2)]

    def test_empty_roster(self):
        """Test an empty roster yields an empty result."""
        result = PeriodProcessor(lambda: [], lambda *args: None).process(2024, 4)

        assert result.records == []
        assert result.operator_count == 0
        assert result.excluded == 0

    def test_roster_failure_fails_period(self):
        """Test a roster that cannot be listed fails the whole period."""
        def roster():
            raise ConnectionError("registry down")

        with pytest.raises(OperatorRosterUnavailableError) as exc_info:
            PeriodProcessor(roster, lambda *args: None).process(2024, 4)

        assert "registry down" in exc_info.value.message

    def test_roster_error_passes_through(self):
        """Test a roster error that is already specific is not re-wrapped."""
        error = OperatorRosterUnavailableError("maintenance")

        def roster():
            raise error

        with pytest.raises(OperatorRosterUnavailableError) as exc_info:
            PeriodProcessor(roster, lambda *args: None).process(2024, 4)

        assert exc_info.value is error

    def test_invalid_quarter(self):
        """Test quarters outside 1..4 are rejected before the roster is read."""
        with pytest.raises(InvalidPeriodError):
            PeriodProcessor(lambda: ROSTER, lambda *args: None).process(2024, 0)

    def test_processing_time_recorded(self):
        """Test processing time is measured."""
        result = PeriodProcessor(lambda: ROSTER, lambda *args: None).process(2024, 4)
        assert result.processing_time_ms >= 0


class TestConcurrentProcessing:
    """Tests for PeriodProcessor.process_async."""

    @pytest.mark.asyncio
    async def test_roster_order_preserved(self):
        """Test results follow the roster even when later units finish first."""
        delays = {"A001": 0.05, "B002": 0.0, "C003": 0.02}

        def unit(operator_id, year, quarter):
            time.sleep(delays[operator_id])
            return make_record(operator_id)

        processor = PeriodProcessor(lambda: ROSTER, unit, max_concurrency=3)
        result = await processor.process_async(2024, 4)

        assert [r.operator_id for r in result.records] == ["A001", "B002", "C003"]

    @pytest.mark.asyncio
    async def test_failures_isolated(self):
        """Test a raising unit is recorded as a failure in the concurrent path."""
        def unit(operator_id, year, quarter):
            if operator_id == "C003":
                raise ValueError("malformed balance")
            return make_record(operator_id)

        result = await PeriodProcessor(lambda: ROSTER, unit, max_concurrency=2).process_async(2024, 4)

        assert result.included == 2
        assert result.failed == 1
        assert result.failures[0].operator_id == "C003"

    @pytest.mark.asyncio
    async def test_matches_sequential(self):
        """Test the concurrent path returns the same records as the sequential one."""
        def unit(operator_id, year, quarter):
            return None if operator_id == "B002" else make_record(operator_id, year, quarter)

        processor = PeriodProcessor(lambda: ROSTER, unit, max_concurrency=2)
        sequential = processor.process(2024, 4)
        concurrent = await processor.process_async(2024, 4)

        assert concurrent.records == sequential.records
        assert concurrent.excluded == sequential.excluded

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        """Test no more units run at once than allowed."""
        running = 0
        peak = 0
        lock = threading.Lock()

        def unit(operator_id, year, quarter):
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            time.sleep(0.02)
            with lock:
                running -= 1
            return make_record(operator_id)

        roster = [OperatorInfo(f"OP{i}", f"Operator {i}") for i in range(6)]
        result = await PeriodProcessor(lambda: roster, unit, max_concurrency=2).process_async(2024, 4)

        assert result.included == 6
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_roster_failure(self):
        """Test the concurrent path also fails when the roster is unavailable."""
        def roster():
            raise RuntimeError("boom")

        with pytest.raises(OperatorRosterUnavailableError):
            await PeriodProcessor(roster, lambda *args: None).process_async(2024, 4)
