"""
Classification API routes.

Provides endpoints for checking which category ledger descriptions fall into.
"""
from typing import List, Optional

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from healthplan_ratios.indicator_engine.classification import get_category_classifier

logger = structlog.get_logger(__name__)

router = APIRouter()


class ClassifyRequest(BaseModel):
    """Request model for classification."""

    descriptions: List[str] = Field(
        ..., description="Ledger descriptions to classify", min_length=1, max_length=500
    )


class ClassifyResult(BaseModel):
    """Response model for one classified description."""

    description: str = Field(..., description="Original input text")
    normalized: str = Field(..., description="Text after normalization")
    category: str = Field(..., description="Assigned category")
    pattern: Optional[str] = Field(None, description="Pattern that decided the category")


class ClassifyResponse(BaseModel):
    """Response model for classification."""

    results: List[ClassifyResult] = Field(..., description="Classification results, in input order")
    total: int = Field(..., description="Total descriptions classified")
    uncategorized: int = Field(..., description="Descriptions matching no pattern")


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    summary="Classify ledger descriptions",
    description="Classify ledger descriptions into indicator categories to inspect pattern coverage.",
)
async def classify_descriptions(request: ClassifyRequest) -> ClassifyResponse:
    """
    Classify ledger descriptions.

    Args:
        request: Descriptions to classify.

    Returns:
        Category and deciding pattern of each description.
    """
    classifier = get_category_classifier()
    results = classifier.classify_batch(request.descriptions)
    uncategorized = sum(1 for result in results if not result.matched)

    logger.info("descriptions_classified", total=len(results), uncategorized=uncategorized)

    return ClassifyResponse(
        results=[
            ClassifyResult(
                description=result.description,
                normalized=result.normalized,
                category=result.category.value,
                pattern=result.pattern,
            )
            for result in results
        ],
        total=len(results),
        uncategorized=uncategorized,
    )
