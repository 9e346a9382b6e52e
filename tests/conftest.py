"""
Pytest configuration and fixtures.
"""
import os
from datetime import date
from typing import Generator, List

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from healthplan_ratios.api.dependencies import get_data_source
from healthplan_ratios.config import Settings
from healthplan_ratios.database import Base
from healthplan_ratios.indicator_engine.models import LedgerEntry, OperatorInfo
from healthplan_ratios.main import app
from healthplan_ratios.services.data_source import InMemoryDataSource
from healthplan_ratios.services.indicator_service import IndicatorService


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session: Session) -> sessionmaker:
    """Session factory bound to the test database (tables already created)."""
    return TestingSessionLocal


def make_entry(
    operator_id: str,
    year: int,
    quarter: int,
    description: str,
    closing_balance: float,
    **kwargs,
) -> LedgerEntry:
    return LedgerEntry(
        operator_id=operator_id,
        year=year,
        quarter=quarter,
        account_code=kwargs.pop("account_code", "3"),
        description=description,
        closing_balance=closing_balance,
        **kwargs,
    )


@pytest.fixture
def sample_operators() -> List[OperatorInfo]:
    """Active roster in legal-name order."""
    return [
        OperatorInfo("A001", "Alfa Saúde", "Campinas", "SP"),
        OperatorInfo("B002", "Beta Planos", "Recife", "PE"),
        OperatorInfo("C003", "Gama Assistência", "N/A", "BR"),
    ]


@pytest.fixture
def sample_entries() -> List[LedgerEntry]:
    """
    Ledger entries for three operators.

    A001 has 2023Q4, 2024Q3 and 2024Q4; B002 has no revenue in 2024Q4;
    C003 has 2024Q4 only.
    """
    closing = dict(reference_date=date(2024, 12, 31), source_file="4T2024.csv")
    return [
        # A001 2024Q4: mll 12.4, dm 68, da 15, dop 83
        make_entry("A001", 2024, 4, "Receita de Contraprestações", 1_000_000, **closing),
        make_entry("A001", 2024, 4, "Eventos Indenizáveis Líquidos", 680_000, **closing),
        make_entry("A001", 2024, 4, "Despesas Administrativas", 150_000, **closing),
        make_entry("A001", 2024, 4, "Lucro Líquido", 124_000, **closing),
        # A001 2024Q3: mll 10, dm 70, da 15
        make_entry("A001", 2024, 3, "Receita de Contraprestações", 900_000),
        make_entry("A001", 2024, 3, "Eventos Indenizáveis Líquidos", 630_000),
        make_entry("A001", 2024, 3, "Despesas Administrativas", 135_000),
        make_entry("A001", 2024, 3, "Lucro Líquido", 90_000),
        # A001 2023Q4: mll 5, dm 70
        make_entry("A001", 2023, 4, "Receita de Contraprestações", 800_000),
        make_entry("A001", 2023, 4, "Eventos Indenizáveis Líquidos", 560_000),
        make_entry("A001", 2023, 4, "Lucro Líquido", 40_000),
        # B002 2024Q4: no revenue
        make_entry("B002", 2024, 4, "Despesas com Marketing", 500),
        # C003 2024Q4: mll 15, dm 60, da 10, dop 70
        make_entry("C003", 2024, 4, "Receita de Contraprestações", 500_000),
        make_entry("C003", 2024, 4, "Eventos Indenizáveis Líquidos", 300_000),
        make_entry("C003", 2024, 4, "Despesas Administrativas", 50_000),
        make_entry("C003", 2024, 4, "Lucro Líquido", 75_000),
    ]


@pytest.fixture
def sample_source(sample_entries, sample_operators) -> InMemoryDataSource:
    """In-memory data source over the sample ledger."""
    return InMemoryDataSource(
        entries=sample_entries,
        operators=sample_operators,
        covered_individuals={("A001", 2024, 4): 15_000},
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the default history window and sequential processing."""
    return Settings(
        database_url=SQLALCHEMY_DATABASE_URL,
        history_latest_year=2024,
        history_latest_quarter=4,
        history_lookback=5,
        period_max_concurrency=1,
    )


@pytest.fixture
def indicator_service(sample_source, test_settings) -> IndicatorService:
    """Indicator service over the sample ledger."""
    return IndicatorService(sample_source, test_settings)


@pytest.fixture(scope="function")
def client(sample_source: InMemoryDataSource) -> Generator[TestClient, None, None]:
    """Create a test client with the data source replaced by the sample ledger."""
    app.dependency_overrides[get_data_source] = lambda: sample_source

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset global singleton instances before each test for proper isolation."""
    import healthplan_ratios.indicator_engine.classification as classification_module

    classification_module._classifier_instance = None

    yield

    classification_module._classifier_instance = None
