"""
Period API routes.

Provides the indicators of every operator in a quarter, their average and
rankings by one ratio.
"""
import structlog
from fastapi import APIRouter, Depends, Query

from healthplan_ratios.api.dependencies import get_indicator_service
from healthplan_ratios.api.routes.operators import to_record_response
from healthplan_ratios.exceptions import ConsolidationUnavailableError
from healthplan_ratios.indicator_engine.catalogue import (
    get_indicator_definition,
    meets_target,
    rank_records,
)
from healthplan_ratios.schemas.indicators import (
    ConsolidatedResponse,
    PeriodFailureResponse,
    PeriodIndicatorsResponse,
    RankingEntryResponse,
    RankingResponse,
)
from healthplan_ratios.services.indicator_service import IndicatorService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/periods/{year}/{quarter}/indicators",
    response_model=PeriodIndicatorsResponse,
    summary="Indicators of every active operator",
)
async def get_period_indicators(
    year: int,
    quarter: int,
    service: IndicatorService = Depends(get_indicator_service),
) -> PeriodIndicatorsResponse:
    """
    Process every active operator of a quarter.

    Operators without data or whose calculation fails are counted as excluded;
    failures are listed with their error.
    """
    result = await service.process_period_async(year, quarter)

    return PeriodIndicatorsResponse(
        year=result.year,
        quarter=result.quarter,
        records=[to_record_response(record) for record in result.records],
        operator_count=result.operator_count,
        included=result.included,
        excluded=result.excluded,
        failures=[
            PeriodFailureResponse(
                operator_id=failure.operator_id,
                error=failure.error,
                error_type=failure.error_type,
            )
            for failure in result.failures
        ],
        processing_time_ms=round(result.processing_time_ms, 2),
    )


@router.get(
    "/periods/{year}/{quarter}/consolidated",
    response_model=ConsolidatedResponse,
    summary="Average indicators of a quarter",
)
async def get_period_consolidated(
    year: int,
    quarter: int,
    service: IndicatorService = Depends(get_indicator_service),
) -> ConsolidatedResponse:
    """Average each ratio across the operators with a record; 404 when there are none."""
    result = await service.process_period_async(year, quarter)
    consolidated = service.consolidate_average(result.records)
    if consolidated is None:
        raise ConsolidationUnavailableError(year, quarter)
    return ConsolidatedResponse(**consolidated.to_dict())


@router.get(
    "/periods/{year}/{quarter}/ranking",
    response_model=RankingResponse,
    summary="Rank operators by one indicator",
)
async def get_period_ranking(
    year: int,
    quarter: int,
    indicator: str = Query("mll", description="Indicator key to rank by"),
    service: IndicatorService = Depends(get_indicator_service),
) -> RankingResponse:
    """Rank a quarter's operators best first, according to the indicator's direction."""
    definition = get_indicator_definition(indicator)
    result = await service.process_period_async(year, quarter)
    ranking = rank_records(result.records, indicator)

    logger.info(
        "ranking_built",
        year=year,
        quarter=quarter,
        indicator=indicator,
        entries=len(ranking),
    )

    return RankingResponse(
        year=year,
        quarter=quarter,
        indicator=indicator,
        higher_is_better=definition.higher_is_better,
        entries=[
            RankingEntryResponse(
                position=entry.position,
                operator_id=entry.operator_id,
                value=entry.value,
                meets_target=meets_target(indicator, entry.value),
            )
            for entry in ranking
        ],
    )
