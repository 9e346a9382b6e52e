"""Models package."""
from healthplan_ratios.models.operator import Operator
from healthplan_ratios.models.ledger_entry import LedgerEntryRow
from healthplan_ratios.models.covered_individuals import CoveredIndividuals

__all__ = ["Operator", "LedgerEntryRow", "CoveredIndividuals"]
