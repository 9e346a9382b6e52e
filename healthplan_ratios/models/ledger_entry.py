"""
Ledger entry model.

One line of an operator's quarterly financial statement as loaded from the
regulator's open-data files.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Date, Index, Integer, Numeric, String, Text

from healthplan_ratios.database import Base


class LedgerEntryRow(Base):
    """
    SQLAlchemy model for ledger entries.

    Attributes:
        id: Surrogate key.
        reference_date: Statement date of the loaded file.
        operator_id: Operator registration number (string).
        account_code: Chart-of-accounts code.
        description: Free-text account description.
        opening_balance: Balance at the start of the quarter.
        closing_balance: Balance at the end of the quarter.
        source_file: Name of the file the row was loaded from.
        year: Reporting year.
        quarter: Reporting quarter (1-4).
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_operator_period", "operator_id", "year", "quarter"),
    )

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    reference_date: Optional[date] = Column(Date, nullable=True, index=True)
    operator_id: str = Column(String(20), nullable=False)
    account_code: str = Column(String(50), nullable=False)
    description: str = Column(Text, nullable=False)
    opening_balance: Optional[Decimal] = Column(Numeric(precision=20, scale=2), nullable=True)
    closing_balance: Optional[Decimal] = Column(Numeric(precision=20, scale=2), nullable=True)
    source_file: Optional[str] = Column(String(255), nullable=True)
    year: int = Column(Integer, nullable=False)
    quarter: int = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LedgerEntryRow(operator_id='{self.operator_id}', {self.year}Q{self.quarter}, "
            f"description='{self.description}', closing_balance={self.closing_balance})>"
        )
