"""Data-quality validation for reconciliation records."""

from reconciliation.validators.business_validators import BusinessRuleValidators
from reconciliation.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)
from reconciliation.validators.validator import ReconciliationValidator

__all__ = [
    "ReconciliationValidator",
    "ValidationReport",
    "ValidationIssue",
    "ValidationSeverity",
    "BusinessRuleValidators",
]
