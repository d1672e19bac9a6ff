"""Unit tests for validate command."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from reconciliation.cli import cli
from reconciliation.services.record_store import (
    TEAM_MEMBERS,
    TIME_ENTRIES,
    InMemoryRecordStore,
)


class TestValidateCommand:
    """Test suite for validate command."""

    @pytest.fixture
    def runner(self):
        """Create a Click CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def store(self, store_records):
        """Seeded in-memory store."""
        return InMemoryRecordStore(store_records)

    @pytest.fixture
    def invoke(self, runner, store, test_config):
        """Invoke the CLI against the seeded store."""

        def _invoke(*args):
            return runner.invoke(
                cli, list(args), obj={"store": store, "config": test_config}
            )

        return _invoke

    def test_clean_store_passes(self, invoke):
        """Test a clean store passes validation."""
        result = invoke("validate")

        assert result.exit_code == 0, result.output
        assert "Validating store records..." in result.output
        assert "Validation passed! No issues found." in result.output

    def test_warnings_do_not_fail(self, invoke, store):
        """Test warnings are shown but exit 0."""
        store.insert_many(TEAM_MEMBERS, [{"id": "tm-3", "name": "Carol"}])

        result = invoke("validate")

        assert result.exit_code == 0, result.output
        assert "Missing hourly rate" in result.output
        assert "Validation completed with 1 warning(s)" in result.output

    def test_errors_exit_with_validation_code(self, invoke, store):
        """Test errors exit with code 3."""
        store.insert_many(
            TIME_ENTRIES,
            [
                {
                    "id": "te-bad",
                    "project_id": "proj-hourly",
                    "team_member_id": "tm-1",
                    "hours": 1,
                    "date": "2025-03-06",
                    "billable": False,
                    "client_billed": True,
                }
            ],
        )

        result = invoke("validate")

        assert result.exit_code == 3
        assert "te-bad" in result.output
        assert "Validation failed with 1 error(s)" in result.output

    def test_severity_filter(self, invoke, store):
        """Test info issues are only shown on request."""
        store.insert_many(
            "referrals",
            [
                {
                    "id": "ref-2",
                    "project_id": "proj-retainer",
                    "status": "active",
                    "commission_months": 6,
                }
            ],
        )

        default = invoke("validate")
        verbose = invoke("validate", "--severity", "info")

        assert "default rate applies" not in default.output
        assert "default rate applies" in verbose.output

    def test_unexpected_error_with_debug(self, invoke):
        """Test --debug prints the stack trace of unexpected errors."""
        with patch(
            "reconciliation.cli.commands.validate.financials_service",
            side_effect=RuntimeError("boom"),
        ):
            result = invoke("--debug", "validate")

        assert result.exit_code == 255
        assert "Full stack trace:" in result.output
