"""
Covered individuals model.

Quarterly count of beneficiaries per operator.
"""
from sqlalchemy import Column, Integer, String, UniqueConstraint

from healthplan_ratios.database import Base


class CoveredIndividuals(Base):
    """SQLAlchemy model for quarterly beneficiary counts."""

    __tablename__ = "covered_individuals"
    __table_args__ = (
        UniqueConstraint("operator_id", "year", "quarter", name="uq_covered_individuals_period"),
    )

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    operator_id: str = Column(String(20), nullable=False, index=True)
    operator_name: str = Column(String(255), nullable=True)
    count: int = Column(Integer, nullable=False)
    year: int = Column(Integer, nullable=False)
    quarter: int = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<CoveredIndividuals(operator_id='{self.operator_id}', {self.year}Q{self.quarter}, count={self.count})>"
