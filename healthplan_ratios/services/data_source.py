"""
Ledger data sources.

The indicator engine never queries storage itself; it asks a data source for
the entries of one operator and quarter, for the active roster and for the
optional covered-individuals count. Two implementations are provided: an
in-memory source and a SQLAlchemy-backed source over the regulator tables.
"""
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthplan_ratios.exceptions import DataSourceError
from healthplan_ratios.indicator_engine.models import LedgerEntry, LedgerSnapshot, OperatorInfo
from healthplan_ratios.models.covered_individuals import CoveredIndividuals
from healthplan_ratios.models.ledger_entry import LedgerEntryRow
from healthplan_ratios.models.operator import Operator

logger = structlog.get_logger(__name__)

# Two-letter state code inside a free-text commercialization region
_STATE_CODE_RE = re.compile(r"\b([A-Z]{2})\b")

DEFAULT_REGION = "BR"
DEFAULT_MUNICIPALITY = "N/A"


def extract_region(commercialization_region: Optional[str]) -> str:
    """Return the first standalone state code of a region text, or "BR"."""
    if commercialization_region:
        match = _STATE_CODE_RE.search(commercialization_region)
        if match:
            return match.group(1)
    return DEFAULT_REGION


class LedgerDataSource(ABC):
    """Abstract source of ledger entries and operator metadata."""

    @abstractmethod
    def fetch_ledger_entries(
        self,
        operator_id: Optional[str] = None,
        year: Optional[int] = None,
        quarter: Optional[int] = None,
    ) -> List[LedgerEntry]:
        """
        Fetch ledger entries, optionally filtered.

        Args:
            operator_id: Restrict to one operator.
            year: Restrict to one year.
            quarter: Restrict to one quarter.

        Returns:
            Matching ledger entries.
        """
        pass

    @abstractmethod
    def fetch_active_operators(self) -> List[OperatorInfo]:
        """Return active operators in roster order."""
        pass

    @abstractmethod
    def fetch_covered_individuals(self, operator_id: str, year: int, quarter: int) -> Optional[int]:
        """Return the covered-individuals count of an operator, if known."""
        pass

    def fetch_latest_snapshot(self) -> Optional[LedgerSnapshot]:
        """Return metadata of the most recent ledger load, if the source tracks it."""
        return None


class InMemoryDataSource(LedgerDataSource):
    """Data source over entries already held in memory."""

    def __init__(
        self,
        entries: Iterable[LedgerEntry] = (),
        operators: Iterable[OperatorInfo] = (),
        covered_individuals: Optional[Dict[Tuple[str, int, int], int]] = None,
    ):
        self._entries: Tuple[LedgerEntry, ...] = tuple(entries)
        self._operators: Tuple[OperatorInfo, ...] = tuple(operators)
        self._covered = dict(covered_individuals or {})

    def fetch_ledger_entries(
        self,
        operator_id: Optional[str] = None,
        year: Optional[int] = None,
        quarter: Optional[int] = None,
    ) -> List[LedgerEntry]:
        return [
            entry for entry in self._entries
            if (operator_id is None or entry.operator_id == operator_id)
            and (year is None or entry.year == year)
            and (quarter is None or entry.quarter == quarter)
        ]

    def fetch_active_operators(self) -> List[OperatorInfo]:
        return list(self._operators)

    def fetch_covered_individuals(self, operator_id: str, year: int, quarter: int) -> Optional[int]:
        return self._covered.get((operator_id, year, quarter))

    def fetch_latest_snapshot(self) -> Optional[LedgerSnapshot]:
        dated = [entry for entry in self._entries if entry.reference_date is not None]
        if not dated:
            return None
        latest = max(dated, key=lambda entry: entry.reference_date)
        return LedgerSnapshot(
            reference_date=latest.reference_date,
            year=latest.year,
            quarter=latest.quarter,
            operator_id=latest.operator_id,
            source_file=latest.source_file,
        )


class SqlAlchemyDataSource(LedgerDataSource):
    """
    Data source backed by the regulator tables.

    Opens one session per call so concurrent period units never share a
    session. Database errors surface as DataSourceError.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize the data source.

        Args:
            session_factory: Callable returning a new SQLAlchemy session.
        """
        self._session_factory = session_factory

    @staticmethod
    def _to_entry(row: LedgerEntryRow) -> LedgerEntry:
        return LedgerEntry(
            operator_id=row.operator_id,
            year=row.year,
            quarter=row.quarter,
            account_code=row.account_code,
            description=row.description or "",
            opening_balance=float(row.opening_balance or 0),
            closing_balance=float(row.closing_balance or 0),
            source_file=row.source_file or "",
            reference_date=row.reference_date,
        )

    @staticmethod
    def _to_operator(operator: Operator) -> OperatorInfo:
        return OperatorInfo(
            operator_id=operator.registration_number,
            display_name=operator.trade_name or operator.legal_name,
            municipality=operator.city or DEFAULT_MUNICIPALITY,
            region=extract_region(operator.commercialization_region),
        )

    def fetch_ledger_entries(
        self,
        operator_id: Optional[str] = None,
        year: Optional[int] = None,
        quarter: Optional[int] = None,
    ) -> List[LedgerEntry]:
        statement = select(LedgerEntryRow)
        if operator_id is not None:
            statement = statement.where(LedgerEntryRow.operator_id == str(operator_id))
        if year is not None:
            statement = statement.where(LedgerEntryRow.year == year)
        if quarter is not None:
            statement = statement.where(LedgerEntryRow.quarter == quarter)
        statement = statement.order_by(LedgerEntryRow.id)

        try:
            with self._session_factory() as session:
                rows = session.execute(statement).scalars().all()
                entries = [self._to_entry(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(
                "ledger_fetch_failed",
                operator_id=operator_id,
                year=year,
                quarter=quarter,
                error=str(e),
            )
            raise DataSourceError(
                f"Failed to fetch ledger entries: {e}",
                details={"operator_id": operator_id, "year": year, "quarter": quarter},
            ) from e

        logger.debug(
            "ledger_entries_fetched",
            operator_id=operator_id,
            year=year,
            quarter=quarter,
            count=len(entries),
        )
        return entries

    def fetch_active_operators(self) -> List[OperatorInfo]:
        statement = (
            select(Operator)
            .where(Operator.deregistered_on.is_(None))
            .order_by(Operator.legal_name)
        )
        try:
            with self._session_factory() as session:
                operators = [self._to_operator(op) for op in session.execute(statement).scalars()]
        except SQLAlchemyError as e:
            logger.error("operator_fetch_failed", error=str(e))
            raise DataSourceError(f"Failed to fetch operators: {e}") from e

        logger.info("active_operators_fetched", count=len(operators))
        return operators

    def fetch_covered_individuals(self, operator_id: str, year: int, quarter: int) -> Optional[int]:
        statement = (
            select(CoveredIndividuals.count)
            .where(
                CoveredIndividuals.operator_id == str(operator_id),
                CoveredIndividuals.year == year,
                CoveredIndividuals.quarter == quarter,
            )
            .limit(1)
        )
        try:
            with self._session_factory() as session:
                return session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DataSourceError(
                f"Failed to fetch covered individuals: {e}",
                details={"operator_id": operator_id, "year": year, "quarter": quarter},
            ) from e

    def fetch_latest_snapshot(self) -> Optional[LedgerSnapshot]:
        statement = (
            select(LedgerEntryRow)
            .where(LedgerEntryRow.reference_date.is_not(None))
            .order_by(LedgerEntryRow.reference_date.desc(), LedgerEntryRow.id.desc())
            .limit(1)
        )
        try:
            with self._session_factory() as session:
                row = session.execute(statement).scalars().first()
                if row is None:
                    return None
                return LedgerSnapshot(
                    reference_date=row.reference_date,
                    year=row.year,
                    quarter=row.quarter,
                    operator_id=row.operator_id,
                    source_file=row.source_file or "",
                )
        except SQLAlchemyError as e:
            raise DataSourceError(f"Failed to fetch ledger metadata: {e}") from e
