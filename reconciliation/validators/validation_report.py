"""Validation report for collecting data-quality issues on store records."""

from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ValidationSeverity(IntEnum):
    """Severity levels for validation issues."""

    INFO = 1
    WARNING = 2
    ERROR = 3


_HEADINGS = {
    ValidationSeverity.ERROR: "ERRORS",
    ValidationSeverity.WARNING: "WARNINGS",
    ValidationSeverity.INFO: "INFO",
}


@dataclass
class ValidationIssue:
    """A single data-quality issue found on a record.

    Attributes:
        severity: The severity level of the issue
        record_type: Kind of record (project, time_entry, referral, ...)
        record_id: Identifier of the offending record, when known
        field: The field name that has the issue
        message: Human-readable description of the issue
        value: The value that caused the issue
    """

    severity: ValidationSeverity
    record_type: str
    record_id: Optional[str]
    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        """Return e.g. ``[WARNING] time_entry te-1 hours: message``."""
        record = self.record_type
        if self.record_id is not None:
            record = f"{record} {self.record_id}"
        return f"[{self.severity.name}] {record} {self.field}: {self.message}"


class ValidationReport:
    """Collects data-quality issues found while reconciling records.

    Issues never stop a calculation. Errors mark records whose figures are
    certainly wrong (e.g. a billed entry that is not billable), warnings
    mark figures that silently fell back to zero.

    Example:
        >>> report = ValidationReport()
        >>> report.add_warning("team_member", "tm-1", "hourly_rate",
        ...                    "Missing rate, labor cost counted as 0", None)
        >>> report.summary()
        '1 warning(s)'
    """

    def __init__(self) -> None:
        """Initialize an empty validation report."""
        self.issues: List[ValidationIssue] = []

    def _add(
        self,
        severity: ValidationSeverity,
        record_type: str,
        record_id: Optional[str],
        field: str,
        message: str,
        value: Any,
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=severity,
                record_type=record_type,
                record_id=record_id,
                field=field,
                message=message,
                value=value,
            )
        )

    def add_error(
        self,
        record_type: str,
        record_id: Optional[str],
        field: str,
        message: str,
        value: Any = None,
    ) -> None:
        """Add an error-level issue."""
        self._add(ValidationSeverity.ERROR, record_type, record_id, field, message, value)

    def add_warning(
        self,
        record_type: str,
        record_id: Optional[str],
        field: str,
        message: str,
        value: Any = None,
    ) -> None:
        """Add a warning-level issue."""
        self._add(
            ValidationSeverity.WARNING, record_type, record_id, field, message, value
        )

    def add_info(
        self,
        record_type: str,
        record_id: Optional[str],
        field: str,
        message: str,
        value: Any = None,
    ) -> None:
        """Add an info-level issue."""
        self._add(ValidationSeverity.INFO, record_type, record_id, field, message, value)

    def count(self, severity: ValidationSeverity) -> int:
        """Count issues of exactly ``severity``."""
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def error_count(self) -> int:
        """Number of error-level issues."""
        return self.count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        """Number of warning-level issues."""
        return self.count(ValidationSeverity.WARNING)

    def has_errors(self) -> bool:
        """Check whether the report contains any error."""
        return self.error_count > 0

    def issues_at_least(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        """Return issues at or above ``severity``, most severe first."""
        selected = [issue for issue in self.issues if issue.severity >= severity]
        return sorted(selected, key=lambda issue: issue.severity, reverse=True)

    def issues_for(self, record_type: str) -> List[ValidationIssue]:
        """Return issues raised on one kind of record."""
        return [issue for issue in self.issues if issue.record_type == record_type]

    def counts_by_record_type(self) -> Dict[str, int]:
        """Count issues per record type."""
        return dict(Counter(issue.record_type for issue in self.issues))

    def merge(self, other: "ValidationReport") -> None:
        """Append the issues of another report."""
        self.issues.extend(other.issues)

    def summary(self) -> str:
        """Summarize the report as issue counts per severity."""
        names = {
            ValidationSeverity.ERROR: "error",
            ValidationSeverity.WARNING: "warning",
            ValidationSeverity.INFO: "info message",
        }
        parts = []
        for severity in sorted(ValidationSeverity, reverse=True):
            count = self.count(severity)
            if count:
                parts.append(f"{count} {names[severity]}(s)")
        return ", ".join(parts) if parts else "No issues found"

    def format(
        self, min_severity: ValidationSeverity = ValidationSeverity.INFO
    ) -> str:
        """Format the report for display.

        Args:
            min_severity: Lowest severity to include

        Returns:
            Multi-line string, grouped by severity
        """
        if not self.issues:
            return "Validation successful - no issues found"

        lines = [f"Validation Report - {self.summary()}", "=" * 60]
        for severity in sorted(ValidationSeverity, reverse=True):
            if severity < min_severity:
                continue
            selected = [issue for issue in self.issues if issue.severity == severity]
            if selected:
                lines.append(f"\n{_HEADINGS[severity]}:")
                lines.extend(f"  - {issue}" for issue in selected)
        return "\n".join(lines)
