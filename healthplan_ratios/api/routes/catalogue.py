"""
Catalogue and metadata API routes.
"""
from fastapi import APIRouter, Depends

from healthplan_ratios.api.dependencies import get_indicator_service
from healthplan_ratios.indicator_engine.catalogue import INDICATOR_CATALOGUE
from healthplan_ratios.schemas.indicators import (
    CatalogueResponse,
    IndicatorDefinitionResponse,
    MetadataResponse,
)
from healthplan_ratios.services.indicator_service import IndicatorService

router = APIRouter()


@router.get(
    "/indicators/catalogue",
    response_model=CatalogueResponse,
    summary="Indicator catalogue",
)
async def get_catalogue() -> CatalogueResponse:
    """Names, units, direction and reference targets of the eleven ratios."""
    return CatalogueResponse(
        indicators=[
            IndicatorDefinitionResponse(
                key=d.key,
                name=d.name,
                unit=d.unit,
                higher_is_better=d.higher_is_better,
                target=d.target,
                description=d.description,
            )
            for d in INDICATOR_CATALOGUE
        ]
    )


@router.get(
    "/metadata",
    response_model=MetadataResponse,
    summary="Latest ledger load",
)
def get_metadata(service: IndicatorService = Depends(get_indicator_service)) -> MetadataResponse:
    """Reference date, quarter, operator and source file of the most recent ledger entry."""
    snapshot = service.latest_snapshot()
    if snapshot is None:
        return MetadataResponse(available=False)

    return MetadataResponse(
        available=True,
        reference_date=snapshot.reference_date,
        year=snapshot.year,
        quarter=snapshot.quarter,
        operator_id=snapshot.operator_id,
        source_file=snapshot.source_file,
    )
