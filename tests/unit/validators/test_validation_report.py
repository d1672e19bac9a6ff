"""Unit tests for ValidationReport."""

from reconciliation.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)


class TestValidationIssue:
    """Test cases for ValidationIssue."""

    def test_str_with_record_id(self):
        """Test the display form names the record."""
        issue = ValidationIssue(
            severity=ValidationSeverity.WARNING,
            record_type="time_entry",
            record_id="te-1",
            field="hours",
            message="Hours missing",
        )

        assert str(issue) == "[WARNING] time_entry te-1 hours: Hours missing"

    def test_str_without_record_id(self):
        """Test cross-record issues omit the id."""
        issue = ValidationIssue(
            severity=ValidationSeverity.ERROR,
            record_type="referral_payout",
            record_id=None,
            field="period_start",
            message="Duplicate",
        )

        assert str(issue) == "[ERROR] referral_payout period_start: Duplicate"


class TestValidationReport:
    """Test cases for ValidationReport."""

    def test_empty_report(self):
        """Test an empty report has no issues."""
        report = ValidationReport()

        assert not report.has_errors()
        assert report.summary() == "No issues found"
        assert report.format() == "Validation successful - no issues found"

    def test_counts(self):
        """Test counting per severity."""
        report = ValidationReport()
        report.add_error("time_entry", "te-1", "client_billed", "Billed not billable")
        report.add_warning("team_member", "tm-1", "hourly_rate", "Missing rate")
        report.add_warning("project", "p1", "hourly_rate", "Missing rate")
        report.add_info("referral", "ref-1", "commission_rate", "Default rate")

        assert report.has_errors()
        assert report.error_count == 1
        assert report.warning_count == 2
        assert report.count(ValidationSeverity.INFO) == 1
        assert report.summary() == "1 error(s), 2 warning(s), 1 info message(s)"
        assert report.counts_by_record_type() == {
            "time_entry": 1,
            "team_member": 1,
            "project": 1,
            "referral": 1,
        }

    def test_issues_at_least_sorted(self):
        """Test filtering by minimum severity, most severe first."""
        report = ValidationReport()
        report.add_info("referral", "ref-1", "commission_rate", "Default rate")
        report.add_warning("project", "p1", "hourly_rate", "Missing rate")
        report.add_error("time_entry", "te-1", "client_billed", "Billed not billable")

        severities = [
            i.severity for i in report.issues_at_least(ValidationSeverity.WARNING)
        ]

        assert severities == [ValidationSeverity.ERROR, ValidationSeverity.WARNING]

    def test_format_respects_min_severity(self):
        """Test the formatted report hides lower severities."""
        report = ValidationReport()
        report.add_warning("project", "p1", "hourly_rate", "Missing rate")
        report.add_info("referral", "ref-1", "commission_rate", "Default rate")

        text = report.format(ValidationSeverity.WARNING)

        assert "WARNINGS:" in text
        assert "Missing rate" in text
        assert "Default rate" not in text

    def test_merge_and_issues_for(self):
        """Test merging reports and selecting by record type."""
        first = ValidationReport()
        first.add_warning("project", "p1", "hourly_rate", "Missing rate")
        second = ValidationReport()
        second.add_error("time_entry", "te-1", "client_billed", "Billed not billable")

        first.merge(second)

        assert len(first.issues) == 2
        assert [i.record_id for i in first.issues_for("time_entry")] == ["te-1"]
