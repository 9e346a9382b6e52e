"""
Operator model.

Registry of health-plan operators. The registration number is an opaque
string and is the key every other table refers to.
"""
from datetime import date
from typing import Optional

from sqlalchemy import Column, Date, String

from healthplan_ratios.database import Base


class Operator(Base):
    """
    SQLAlchemy model for registered operators.

    Attributes:
        registration_number: Regulator registration number (string, never numeric).
        legal_name: Registered company name.
        trade_name: Commercial name, when different.
        modality: Operator modality (e.g. dental cooperative).
        city: Head-office city.
        commercialization_region: Free-text region, usually containing a state code.
        registered_on: Date of registration with the regulator.
        deregistered_on: Date the registration was cancelled (None while active).
        deregistration_reason: Reason for cancellation.
    """

    __tablename__ = "operators"

    registration_number: str = Column(String(20), primary_key=True)
    legal_name: str = Column(String(255), nullable=False, index=True)
    trade_name: Optional[str] = Column(String(255), nullable=True)
    modality: Optional[str] = Column(String(100), nullable=True)
    city: Optional[str] = Column(String(120), nullable=True)
    commercialization_region: Optional[str] = Column(String(255), nullable=True)
    registered_on: Optional[date] = Column(Date, nullable=True)
    deregistered_on: Optional[date] = Column(Date, nullable=True)
    deregistration_reason: Optional[str] = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Operator(registration_number='{self.registration_number}', legal_name='{self.legal_name}')>"
