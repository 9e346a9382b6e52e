"""Services package."""
from healthplan_ratios.services.data_source import (
    InMemoryDataSource,
    LedgerDataSource,
    SqlAlchemyDataSource,
)
from healthplan_ratios.services.indicator_service import IndicatorService

__all__ = ["LedgerDataSource", "InMemoryDataSource", "SqlAlchemyDataSource", "IndicatorService"]
