"""
Pydantic schemas for indicator API endpoints.

Defines response models for operators, indicator records, consolidated
averages, histories, comparisons, rankings and the indicator catalogue.
"""
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class OperatorResponse(BaseModel):
    """Response model for an active operator."""

    operator_id: str = Field(..., description="Regulator registration number")
    display_name: str = Field(..., description="Trade name, or legal name when absent")
    municipality: str = Field("N/A", description="Operator city")
    region: str = Field("BR", description="Two-letter state code of the commercialization region")


class OperatorListResponse(BaseModel):
    """Response model for the active roster."""

    operators: List[OperatorResponse] = Field(..., description="Active operators by legal name")
    total: int = Field(..., description="Number of active operators")


class IndicatorValues(BaseModel):
    """The eleven regulatory ratios."""

    mll: float = Field(..., description="Net profit margin (%)")
    roe: float = Field(..., description="Return on equity (%)")
    dm: float = Field(..., description="Loss ratio (%)")
    da: float = Field(..., description="Administrative expense ratio (%)")
    dc: float = Field(..., description="Commercial expense ratio (%)")
    dop: float = Field(..., description="Operating expense ratio (%)")
    irf: float = Field(..., description="Financial result ratio (%)")
    lc: float = Field(..., description="Current ratio")
    ctcp: float = Field(..., description="Third-party over own capital (%)")
    pmcr: float = Field(..., description="Average collection period (days)")
    pmpe: float = Field(..., description="Average event payment period (days)")


class IndicatorRecordResponse(IndicatorValues):
    """Response model for one operator in one quarter."""

    operator_id: str = Field(..., description="Operator registration number")
    year: int = Field(..., description="Reporting year")
    quarter: int = Field(..., description="Reporting quarter (1-4)")
    covered_individuals: Optional[int] = Field(None, description="Covered lives, when known")


class PeriodFailureResponse(BaseModel):
    """Response model for an operator whose calculation raised."""

    operator_id: str
    error: str
    error_type: str


class PeriodIndicatorsResponse(BaseModel):
    """Response model for every operator of a quarter."""

    year: int
    quarter: int
    records: List[IndicatorRecordResponse] = Field(..., description="Records in roster order")
    operator_count: int = Field(..., description="Operators in the roster")
    included: int = Field(..., description="Operators with a record")
    excluded: int = Field(..., description="Operators without data or whose calculation failed")
    failures: List[PeriodFailureResponse] = Field(default_factory=list)
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class ConsolidatedResponse(IndicatorValues):
    """Response model for the cross-operator average of a quarter."""

    year: int
    quarter: int
    operator_count: int = Field(..., description="Operators averaged")
    pmcr: int = Field(..., description="Average collection period (whole days)")
    pmpe: int = Field(..., description="Average event payment period (whole days)")


class HistoryPointResponse(BaseModel):
    """One quarter of an operator's history."""

    record: IndicatorRecordResponse
    variations: Dict[str, Optional[float]] = Field(
        ..., description="Percentage change of each ratio against the previous point"
    )


class HistoryResponse(BaseModel):
    """Response model for an operator's history."""

    operator_id: str
    points: List[HistoryPointResponse] = Field(..., description="Quarters in ascending order")


class ComparisonResponse(BaseModel):
    """Response model for a previous-quarter comparison."""

    current: IndicatorRecordResponse
    previous: Optional[IndicatorRecordResponse] = None
    variations: Dict[str, Optional[float]]


class RankingEntryResponse(BaseModel):
    """Response model for one ranking position."""

    position: int = Field(..., description="1 is the best")
    operator_id: str
    value: float = Field(..., description="Ratio value rounded to two decimals")
    meets_target: Optional[bool] = Field(
        None, description="Whether the value reaches the reference target (null without a target)"
    )


class RankingResponse(BaseModel):
    """Response model for a quarter ranking."""

    year: int
    quarter: int
    indicator: str
    higher_is_better: bool
    entries: List[RankingEntryResponse]


class IndicatorDefinitionResponse(BaseModel):
    """Response model for one catalogue entry."""

    key: str
    name: str
    unit: str
    higher_is_better: bool
    target: Optional[float] = None
    description: str = ""


class CatalogueResponse(BaseModel):
    """Response model for the indicator catalogue."""

    indicators: List[IndicatorDefinitionResponse]


class MetadataResponse(BaseModel):
    """Response model for the latest ledger load."""

    available: bool = Field(..., description="Whether any dated ledger entry exists")
    reference_date: Optional[date] = None
    year: Optional[int] = None
    quarter: Optional[int] = None
    operator_id: Optional[str] = None
    source_file: Optional[str] = None
