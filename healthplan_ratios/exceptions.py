"""
Custom exceptions for the health-plan ratios service.

Provides a hierarchy of exceptions with error codes for consistent error handling.
Missing indicator data is not an exception inside the engine; the NotFound
errors below exist only so the HTTP layer can report absence with a status code.
"""
from typing import Optional, Dict, Any


class HealthPlanRatiosError(Exception):
    """
    Base exception for all health-plan ratios errors.

    Attributes:
        error_code: Unique error code (e.g., HPR-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "HPR-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Input Errors (HPR-1XX)
class InvalidPeriodError(HealthPlanRatiosError):
    """Quarter outside 1..4."""
    error_code = "HPR-100"
    http_status = 400

    def __init__(self, year: int, quarter: int, **kwargs):
        message = f"Invalid period: quarter must be between 1 and 4, got {quarter}"
        super().__init__(message, details={"year": year, "quarter": quarter}, **kwargs)


class UnknownIndicatorError(HealthPlanRatiosError):
    """Indicator name is not one of the eleven ratios."""
    error_code = "HPR-101"
    http_status = 400

    def __init__(self, indicator: str, **kwargs):
        message = f"Unknown indicator '{indicator}'"
        super().__init__(message, details={"indicator": indicator}, **kwargs)


# Result Errors (HPR-2XX)
class IndicatorsNotFoundError(HealthPlanRatiosError):
    """No indicators could be computed for an operator and period."""
    error_code = "HPR-200"
    http_status = 404

    def __init__(self, operator_id: str, year: int, quarter: int, **kwargs):
        message = f"No indicators for operator {operator_id} in {year}Q{quarter}"
        super().__init__(
            message,
            details={"operator_id": operator_id, "year": year, "quarter": quarter},
            **kwargs,
        )


class ConsolidationUnavailableError(HealthPlanRatiosError):
    """No operator produced indicators for the period."""
    error_code = "HPR-201"
    http_status = 404

    def __init__(self, year: int, quarter: int, **kwargs):
        message = f"No consolidated indicators for {year}Q{quarter}"
        super().__init__(message, details={"year": year, "quarter": quarter}, **kwargs)


# Data Source Errors (HPR-9XX)
class DataSourceError(HealthPlanRatiosError):
    """The ledger data source failed or returned malformed data."""
    error_code = "HPR-900"
    http_status = 502

    def __init__(self, message: str = "Ledger data source is unavailable", **kwargs):
        super().__init__(message, **kwargs)


class OperatorRosterUnavailableError(DataSourceError):
    """The operator roster could not be listed; the period cannot be processed."""
    error_code = "HPR-901"
    http_status = 503

    def __init__(self, reason: Optional[str] = None, **kwargs):
        message = "Operator roster is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **kwargs)
