"""
Data structures for the indicator engine.

Implements the immutable records flowing through the pipeline:
- Period (year + quarter) with chronological ordering
- LedgerEntry rows as delivered by the data source
- Category buckets used by the classifier
- IndicatorRecord / ConsolidatedRecord outputs
- OperatorInfo roster rows and LedgerSnapshot metadata
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from healthplan_ratios.exceptions import InvalidPeriodError


# Names of the eleven ratios, in reporting order
INDICATOR_FIELDS: Tuple[str, ...] = (
    "mll",
    "roe",
    "dm",
    "da",
    "dc",
    "dop",
    "irf",
    "lc",
    "ctcp",
    "pmcr",
    "pmpe",
)


class Category(str, Enum):
    """Semantic buckets that ledger descriptions are classified into."""
    REVENUE_CONTRIBUTIONS = "revenue_contributions"
    TOTAL_REVENUE = "total_revenue"
    FINANCIAL_REVENUE = "financial_revenue"
    MEDICAL_EXPENSE = "medical_expense"
    ADMIN_EXPENSE = "admin_expense"
    COMMERCIAL_EXPENSE = "commercial_expense"
    FINANCIAL_EXPENSE = "financial_expense"
    EQUITY = "equity"
    NET_INCOME = "net_income"
    CURRENT_ASSETS = "current_assets"
    CURRENT_LIABILITIES = "current_liabilities"
    THIRD_PARTY_CAPITAL = "third_party_capital"
    RECEIVABLES = "receivables"
    PAYABLES_EVENTS = "payables_events"
    UNCATEGORIZED = "uncategorized"


# =============================================================================
# Periods
# =============================================================================

@dataclass(frozen=True, order=True)
class Period:
    """A reporting quarter. Ordering is chronological."""
    year: int
    quarter: int

    def __post_init__(self):
        if self.quarter not in (1, 2, 3, 4):
            raise InvalidPeriodError(year=self.year, quarter=self.quarter)

    @property
    def label(self) -> str:
        return f"{self.year}Q{self.quarter}"

    def previous(self) -> "Period":
        """Return the immediately preceding quarter."""
        if self.quarter == 1:
            return Period(self.year - 1, 4)
        return Period(self.year, self.quarter - 1)


# =============================================================================
# Ledger Input
# =============================================================================

@dataclass(frozen=True)
class LedgerEntry:
    """One line of an operator's quarterly financial statement."""
    operator_id: str
    year: int
    quarter: int
    account_code: str
    description: str
    closing_balance: float
    opening_balance: float = 0.0
    source_file: str = ""
    reference_date: Optional[date] = None

    @property
    def period(self) -> Period:
        return Period(self.year, self.quarter)


@dataclass(frozen=True)
class OperatorInfo:
    """An active operator as listed by the data source."""
    operator_id: str
    display_name: str
    municipality: str = "N/A"
    region: str = "BR"


@dataclass(frozen=True)
class LedgerSnapshot:
    """Most recent ledger load known to the data source."""
    reference_date: Optional[date]
    year: int
    quarter: int
    operator_id: str
    source_file: str


# =============================================================================
# Indicator Output
# =============================================================================

@dataclass(frozen=True)
class IndicatorRecord:
    """The eleven ratios for one operator in one quarter."""
    operator_id: str
    year: int
    quarter: int
    mll: float
    roe: float
    dm: float
    da: float
    dc: float
    dop: float
    irf: float
    lc: float
    ctcp: float
    pmcr: float
    pmpe: float
    covered_individuals: Optional[int] = None

    @property
    def period(self) -> Period:
        return Period(self.year, self.quarter)

    def values(self) -> Dict[str, float]:
        """Ratio values keyed by indicator name."""
        return {name: getattr(self, name) for name in INDICATOR_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConsolidatedRecord:
    """Cross-operator average of the ratios for one quarter."""
    year: int
    quarter: int
    mll: float
    roe: float
    dm: float
    da: float
    dc: float
    dop: float
    irf: float
    lc: float
    ctcp: float
    pmcr: int
    pmpe: int
    operator_count: int = 0

    @property
    def period(self) -> Period:
        return Period(self.year, self.quarter)

    def values(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in INDICATOR_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class OperatorFailure:
    """A per-operator unit of work that raised instead of completing."""
    operator_id: str
    error: str
    error_type: str


@dataclass
class PeriodResult:
    """Outcome of processing every operator of a quarter."""
    year: int
    quarter: int
    records: List[IndicatorRecord] = field(default_factory=list)
    excluded: int = 0  # no result or failed unit
    failures: List[OperatorFailure] = field(default_factory=list)
    operator_count: int = 0
    processing_time_ms: float = 0.0

    @property
    def included(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failures)
