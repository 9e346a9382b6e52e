"""
FastAPI dependencies.

The data source is resolved per request; tests override ``get_data_source``
with an in-memory source.
"""
from fastapi import Depends

from healthplan_ratios.config import get_settings
from healthplan_ratios.database import SessionLocal
from healthplan_ratios.services.data_source import LedgerDataSource, SqlAlchemyDataSource
from healthplan_ratios.services.indicator_service import IndicatorService


def get_data_source() -> LedgerDataSource:
    """Data source backed by the application database."""
    return SqlAlchemyDataSource(SessionLocal)


def get_indicator_service(
    data_source: LedgerDataSource = Depends(get_data_source),
) -> IndicatorService:
    """Indicator service over the request's data source."""
    return IndicatorService(data_source, get_settings())
