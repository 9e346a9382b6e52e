"""
Tests for the ledger data sources.
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from healthplan_ratios.exceptions import DataSourceError
from healthplan_ratios.indicator_engine.models import LedgerEntry, OperatorInfo
from healthplan_ratios.models import CoveredIndividuals, LedgerEntryRow, Operator
from healthplan_ratios.services.data_source import (
    InMemoryDataSource,
    SqlAlchemyDataSource,
    extract_region,
)


@pytest.fixture
def populated_db(db_session):
    """Registry, ledger and beneficiary rows for two operators."""
    db_session.add_all([
        Operator(
            registration_number="000701",
            legal_name="ZETA SAUDE LTDA",
            trade_name=None,
            city="Curitiba",
            commercialization_region="Grupo de municípios - PR",
        ),
        Operator(
            registration_number="123456",
            legal_name="ALFA ASSISTENCIA MEDICA S/A",
            trade_name="Alfa Saúde",
            city=None,
            commercialization_region="Nacional",
        ),
        Operator(
            registration_number="999999",
            legal_name="BETA PLANOS LTDA",
            trade_name="Beta",
            deregistered_on=date(2020, 5, 1),
            deregistration_reason="Cancelamento",
        ),
    ])
    db_session.add_all([
        LedgerEntryRow(
            reference_date=date(2024, 10, 1),
            operator_id="123456",
            account_code="311",
            description="Receita de Contraprestações",
            opening_balance=Decimal("0"),
            closing_balance=Decimal("1000.50"),
            source_file="4T2024.csv",
            year=2024,
            quarter=4,
        ),
        LedgerEntryRow(
            reference_date=date(2024, 10, 1),
            operator_id="123456",
            account_code="411",
            description="Eventos Indenizáveis Líquidos",
            opening_balance=None,
            closing_balance=None,
            source_file="4T2024.csv",
            year=2024,
            quarter=4,
        ),
        LedgerEntryRow(
            reference_date=date(2024, 7, 1),
            operator_id="123456",
            account_code="311",
            description="Receita de Contraprestações",
            closing_balance=Decimal("900"),
            source_file="3T2024.csv",
            year=2024,
            quarter=3,
        ),
        LedgerEntryRow(
            reference_date=None,
            operator_id="000701",
            account_code="311",
            description="Receita Total",
            closing_balance=Decimal("50"),
            year=2024,
            quarter=4,
        ),
    ])
    db_session.add(CoveredIndividuals(
        operator_id="123456", operator_name="Alfa", count=15000, year=2024, quarter=4
    ))
    db_session.commit()
    return db_session


class TestExtractRegion:
    """Tests for state code extraction."""

    @pytest.mark.parametrize("text,expected", [
        ("Grupo de municípios - PR", "PR"),
        ("SP", "SP"),
        ("Estadual RJ e ES", "RJ"),
        ("Nacional", "BR"),
        ("", "BR"),
        (None, "BR"),
        ("grupo de estados - sp", "BR"),
    ])
    def test_extract_region(self, text, expected):
        """Test the first standalone two-letter uppercase token wins."""
        assert extract_region(text) == expected


class TestSqlAlchemyDataSource:
    """Tests for the database-backed data source."""

    def test_fetch_entries_filtered(self, populated_db, session_factory):
        """Test entries are filtered by operator and quarter."""
        source = SqlAlchemyDataSource(session_factory)

        entries = source.fetch_ledger_entries(operator_id="123456", year=2024, quarter=4)

        assert len(entries) == 2
        assert all(isinstance(e, LedgerEntry) for e in entries)
        assert entries[0].closing_balance == pytest.approx(1000.50)
        assert entries[0].description == "Receita de Contraprestações"
        assert entries[0].source_file == "4T2024.csv"

    def test_missing_balance_is_zero(self, populated_db, session_factory):
        """Test null balances are read as zero."""
        entries = SqlAlchemyDataSource(session_factory).fetch_ledger_entries("123456", 2024, 4)

        assert entries[1].closing_balance == 0.0
        assert entries[1].opening_balance == 0.0

    def test_fetch_all_entries(self, populated_db, session_factory):
        """Test no filter returns every entry."""
        assert len(SqlAlchemyDataSource(session_factory).fetch_ledger_entries()) == 4

    def test_active_operators(self, populated_db, session_factory):
        """Test deregistered operators are left out and the rest ordered by legal name."""
        operators = SqlAlchemyDataSource(session_factory).fetch_active_operators()

        assert [op.operator_id for op in operators] == ["123456", "000701"]

    def test_operator_display_fields(self, populated_db, session_factory):
        """Test display name, municipality and region fallbacks."""
        alfa, zeta = SqlAlchemyDataSource(session_factory).fetch_active_operators()

        assert alfa == OperatorInfo("123456", "Alfa Saúde", "N/A", "BR")
        assert zeta == OperatorInfo("000701", "ZETA SAUDE LTDA", "Curitiba", "PR")

    def test_operator_id_kept_as_string(self, populated_db, session_factory):
        """Test leading zeros of registration numbers survive."""
        operators = SqlAlchemyDataSource(session_factory).fetch_active_operators()
        assert "000701" in [op.operator_id for op in operators]

    def test_covered_individuals(self, populated_db, session_factory):
        """Test beneficiary counts are looked up per quarter."""
        source = SqlAlchemyDataSource(session_factory)

        assert source.fetch_covered_individuals("123456", 2024, 4) == 15000
        assert source.fetch_covered_individuals("123456", 2024, 3) is None

    def test_latest_snapshot(self, populated_db, session_factory):
        """Test metadata of the most recent dated entry."""
        snapshot = SqlAlchemyDataSource(session_factory).fetch_latest_snapshot()

        assert snapshot.reference_date == date(2024, 10, 1)
        assert (snapshot.year, snapshot.quarter) == (2024, 4)
        assert snapshot.operator_id == "123456"
        assert snapshot.source_file == "4T2024.csv"

    def test_latest_snapshot_empty(self, session_factory):
        """Test no snapshot on an empty ledger."""
        assert SqlAlchemyDataSource(session_factory).fetch_latest_snapshot() is None

    def test_database_error_wrapped(self):
        """Test database failures surface as DataSourceError."""
        def broken_factory():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        source = SqlAlchemyDataSource(broken_factory)

        with pytest.raises(DataSourceError) as exc_info:
            source.fetch_ledger_entries("123456", 2024, 4)
        assert exc_info.value.details["operator_id"] == "123456"

        with pytest.raises(DataSourceError):
            source.fetch_active_operators()
        with pytest.raises(DataSourceError):
            source.fetch_covered_individuals("123456", 2024, 4)
        with pytest.raises(DataSourceError):
            source.fetch_latest_snapshot()


class TestInMemoryDataSource:
    """Tests for the in-memory data source."""

    def test_filters(self, sample_source):
        """Test entries are filtered by operator and quarter."""
        entries = sample_source.fetch_ledger_entries("A001", 2024, 4)
        assert len(entries) == 4
        assert {e.operator_id for e in entries} == {"A001"}

    def test_roster_order(self, sample_source):
        """Test the roster is returned as given."""
        assert [op.operator_id for op in sample_source.fetch_active_operators()] == ["A001", "B002", "C003"]

    def test_covered_individuals(self, sample_source):
        """Test beneficiary lookups."""
        assert sample_source.fetch_covered_individuals("A001", 2024, 4) == 15_000
        assert sample_source.fetch_covered_individuals("C003", 2024, 4) is None

    def test_latest_snapshot(self, sample_source):
        """Test the most recent dated entry is reported."""
        snapshot = sample_source.fetch_latest_snapshot()
        assert snapshot.reference_date == date(2024, 12, 31)
        assert snapshot.source_file == "4T2024.csv"

    def test_latest_snapshot_without_dates(self):
        """Test no snapshot when no entry is dated."""
        assert InMemoryDataSource().fetch_latest_snapshot() is None
