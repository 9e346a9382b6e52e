"""
Indicator calculator.

Computes the eleven regulatory ratios of one operator in one quarter from its
ledger entries:

    mll   net margin                       net income / total revenue (%)
    roe   return on equity                 net income / equity (%)
    dm    loss ratio                       medical expense / contributions (%)
    da    administrative expense ratio     admin expense / total revenue (%)
    dc    commercial expense ratio         commercial expense / total revenue (%)
    dop   operating expense ratio          (admin + commercial + medical) / total revenue (%)
    irf   financial result ratio           (fin. revenue - fin. expense) / total revenue (%)
    lc    current ratio                    current assets / current liabilities
    ctcp  third-party over own capital     third-party capital / equity (%)
    pmcr  average collection period        receivables / (contributions / 90) (days)
    pmpe  average event payment period     payables / (medical expense / 90) (days)
"""
from typing import Iterable, Optional

import structlog

from healthplan_ratios.indicator_engine.aggregation import CategoryTotals, aggregate_categories
from healthplan_ratios.indicator_engine.models import Category, IndicatorRecord, LedgerEntry

logger = structlog.get_logger(__name__)

# Days in a reporting quarter, used by the average-period ratios
QUARTER_DAYS = 90

# Descriptions logged when an operator has no revenue
DIAGNOSTIC_SAMPLE_SIZE = 10


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Return numerator * scale / denominator, or 0.0 when denominator <= 0."""
    if not denominator > 0:
        return 0.0
    return numerator * scale / denominator


def total_revenue(totals: CategoryTotals) -> float:
    """Revenue basis: the larger of declared total revenue and contributions."""
    return max(totals[Category.TOTAL_REVENUE], totals[Category.REVENUE_CONTRIBUTIONS])


def compute_from_totals(
    operator_id: str,
    year: int,
    quarter: int,
    totals: CategoryTotals,
    covered_individuals: Optional[int] = None,
) -> Optional[IndicatorRecord]:
    """
    Compute the ratios from already aggregated category totals.

    Returns:
        IndicatorRecord, or None when total revenue is zero or negative.
    """
    revenue = total_revenue(totals)
    if not revenue > 0:
        return None

    rev_contrib = totals[Category.REVENUE_CONTRIBUTIONS]
    med_exp = totals[Category.MEDICAL_EXPENSE]
    admin_exp = totals[Category.ADMIN_EXPENSE]
    comm_exp = totals[Category.COMMERCIAL_EXPENSE]
    equity = totals[Category.EQUITY]
    net_income = totals[Category.NET_INCOME]
    fin_result = totals[Category.FINANCIAL_REVENUE] - totals[Category.FINANCIAL_EXPENSE]

    return IndicatorRecord(
        operator_id=operator_id,
        year=year,
        quarter=quarter,
        mll=safe_ratio(net_income, revenue, 100),
        roe=safe_ratio(net_income, equity, 100),
        dm=safe_ratio(med_exp, rev_contrib, 100),
        da=safe_ratio(admin_exp, revenue, 100),
        dc=safe_ratio(comm_exp, revenue, 100),
        dop=safe_ratio(admin_exp + comm_exp + med_exp, revenue, 100),
        irf=safe_ratio(fin_result, revenue, 100),
        lc=safe_ratio(totals[Category.CURRENT_ASSETS], totals[Category.CURRENT_LIABILITIES]),
        ctcp=safe_ratio(totals[Category.THIRD_PARTY_CAPITAL], equity, 100),
        pmcr=safe_ratio(totals[Category.RECEIVABLES], rev_contrib, QUARTER_DAYS),
        pmpe=safe_ratio(totals[Category.PAYABLES_EVENTS], med_exp, QUARTER_DAYS),
        covered_individuals=covered_individuals,
    )


def compute_indicators(
    operator_id: str,
    year: int,
    quarter: int,
    entries: Iterable[LedgerEntry],
    covered_individuals: Optional[int] = None,
) -> Optional[IndicatorRecord]:
    """
    Compute the eleven ratios for one operator in one quarter.

    Args:
        operator_id: Opaque operator identifier.
        year: Reporting year.
        quarter: Reporting quarter (1-4).
        entries: Ledger entries already scoped to the operator and quarter.
        covered_individuals: Optional covered-lives count to attach.

    Returns:
        IndicatorRecord, or None when there is not enough data (no positive revenue).
    """
    entries = list(entries)
    totals = aggregate_categories(entries)
    record = compute_from_totals(operator_id, year, quarter, totals, covered_individuals)

    if record is None:
        logger.info(
            "insufficient_revenue",
            operator_id=operator_id,
            year=year,
            quarter=quarter,
            entries=len(entries),
            descriptions=[e.description for e in entries[:DIAGNOSTIC_SAMPLE_SIZE]],
        )
        return None

    logger.info(
        "indicators_calculated",
        operator_id=operator_id,
        year=year,
        quarter=quarter,
        entries=len(entries),
        uncategorized=len(totals.uncategorized),
        mll=round(record.mll, 1),
        roe=round(record.roe, 1),
        dm=round(record.dm, 1),
        lc=round(record.lc, 2),
    )
    return record
