"""
Operator API routes.

Provides the active roster and per-operator indicators, history and
previous-quarter comparison.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from healthplan_ratios.api.dependencies import get_indicator_service
from healthplan_ratios.exceptions import IndicatorsNotFoundError
from healthplan_ratios.indicator_engine.consolidation import compare_records
from healthplan_ratios.indicator_engine.models import IndicatorRecord
from healthplan_ratios.schemas.indicators import (
    ComparisonResponse,
    HistoryPointResponse,
    HistoryResponse,
    IndicatorRecordResponse,
    OperatorListResponse,
    OperatorResponse,
)
from healthplan_ratios.services.indicator_service import IndicatorService

router = APIRouter()


def to_record_response(record: IndicatorRecord) -> IndicatorRecordResponse:
    return IndicatorRecordResponse(**record.to_dict())


@router.get(
    "/operators",
    response_model=OperatorListResponse,
    summary="List active operators",
)
def list_operators(service: IndicatorService = Depends(get_indicator_service)) -> OperatorListResponse:
    """List operators without a deregistration date, ordered by legal name."""
    operators = service.list_operators()
    return OperatorListResponse(
        operators=[
            OperatorResponse(
                operator_id=op.operator_id,
                display_name=op.display_name,
                municipality=op.municipality,
                region=op.region,
            )
            for op in operators
        ],
        total=len(operators),
    )


@router.get(
    "/operators/{operator_id}/indicators",
    response_model=IndicatorRecordResponse,
    summary="Indicators of one operator in one quarter",
)
def get_operator_indicators(
    operator_id: str,
    year: int = Query(..., description="Reporting year"),
    quarter: int = Query(..., description="Reporting quarter (1-4)"),
    service: IndicatorService = Depends(get_indicator_service),
) -> IndicatorRecordResponse:
    """
    Calculate the eleven ratios of an operator.

    Returns 404 when the operator has no positive revenue in the quarter.
    """
    record = service.calculate_indicators(operator_id, year, quarter)
    if record is None:
        raise IndicatorsNotFoundError(operator_id, year, quarter)
    return to_record_response(record)


@router.get(
    "/operators/{operator_id}/history",
    response_model=HistoryResponse,
    summary="Indicator history of one operator",
)
def get_operator_history(
    operator_id: str,
    service: IndicatorService = Depends(get_indicator_service),
) -> HistoryResponse:
    """
    Build the operator's history over the configured lookback window.

    Each point carries the variation of every ratio against the point before
    it; the first point has none.
    """
    history: List[IndicatorRecord] = service.build_history(operator_id)

    points = []
    previous = None
    for record in history:
        points.append(HistoryPointResponse(
            record=to_record_response(record),
            variations=compare_records(record, previous),
        ))
        previous = record

    return HistoryResponse(operator_id=operator_id, points=points)


@router.get(
    "/operators/{operator_id}/comparison",
    response_model=ComparisonResponse,
    summary="Compare a quarter with the previous one",
)
def get_operator_comparison(
    operator_id: str,
    year: int = Query(..., description="Reporting year"),
    quarter: int = Query(..., description="Reporting quarter (1-4)"),
    service: IndicatorService = Depends(get_indicator_service),
) -> ComparisonResponse:
    """Variation of each ratio against the immediately previous quarter."""
    comparison = service.compare_with_previous(operator_id, year, quarter)
    if comparison is None:
        raise IndicatorsNotFoundError(operator_id, year, quarter)

    return ComparisonResponse(
        current=to_record_response(comparison.current),
        previous=to_record_response(comparison.previous) if comparison.previous else None,
        variations=comparison.variations,
    )
