"""
Global pytest configuration and fixtures.
"""
import datetime as dt
from decimal import Decimal
from typing import Dict

import pytest

from reconciliation.config import ReconciliationConfig, reload_config
from reconciliation.models import Project, Referral, TeamMember, TimeEntry


@pytest.fixture(scope="session")
def test_env_vars() -> Dict[str, str]:
    """Test environment variables for configuration."""
    return {
        'SUPABASE_URL': 'https://test-project.supabase.co',
        'SUPABASE_SERVICE_KEY': 'test-service-key',
        'ENVIRONMENT': 'testing',
        'DEBUG': 'true',
        'LOG_LEVEL': 'DEBUG'
    }


@pytest.fixture
def mock_env(test_env_vars, monkeypatch):
    """Mock environment variables for testing."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)

    # Clear the global config to force reload with test values
    import reconciliation.config.settings
    reconciliation.config.settings._config = None

    yield test_env_vars

    # Clean up
    reconciliation.config.settings._config = None


@pytest.fixture
def test_config(mock_env) -> ReconciliationConfig:
    """Test configuration instance."""
    return reload_config()


@pytest.fixture
def hourly_project() -> Project:
    """Hourly project billed at 100/hour."""
    return Project(id="proj-hourly", name="Website", billing_type="hourly", hourly_rate=100)


@pytest.fixture
def retainer_project() -> Project:
    """Retainer project with a 2000 retainer and 20 included hours."""
    return Project(
        id="proj-retainer",
        name="Growth Retainer",
        billing_type="retainer",
        monthly_retainer=2000,
        retainer_hours_included=20,
    )


@pytest.fixture
def team_members():
    """Two team members with cost rates."""
    return [
        TeamMember(id="tm-1", name="Alice", hourly_rate=50),
        TeamMember(id="tm-2", name="Bob", hourly_rate=Decimal("62.5")),
    ]


@pytest.fixture
def hourly_entries():
    """Entries for the hourly project: 8 billable hours, 5 of them billed."""
    return [
        TimeEntry(
            id="te-1",
            project_id="proj-hourly",
            team_member_id="tm-1",
            hours=5,
            date=dt.date(2025, 3, 3),
            billable=True,
            client_billed=True,
        ),
        TimeEntry(
            id="te-2",
            project_id="proj-hourly",
            team_member_id="tm-1",
            hours=3,
            date=dt.date(2025, 3, 4),
            billable=True,
            client_billed=False,
        ),
        TimeEntry(
            id="te-3",
            project_id="proj-hourly",
            team_member_id="tm-1",
            hours=2,
            date=dt.date(2025, 3, 5),
            billable=False,
        ),
    ]


@pytest.fixture
def active_referral() -> Referral:
    """Active referral paying 15% of a 2000 retainer for 3 months."""
    return Referral(
        id="ref-1",
        partner_id="partner-1",
        project_id="proj-retainer",
        status="active",
        commission_rate=15,
        commission_months=3,
        monthly_retainer=2000,
    )




@pytest.fixture
def store_records():
    """Raw store records: hourly and retainer project, two members, a referral."""
    return {
        "projects": [
            {"id": "proj-hourly", "billing_type": "hourly", "hourly_rate": 100},
            {
                "id": "proj-retainer",
                "billing_type": "retainer",
                "monthly_retainer": 2000,
                "retainer_hours_included": 20,
            },
        ],
        "team_members": [
            {"id": "tm-1", "name": "Alice", "hourly_rate": 50},
            {"id": "tm-2", "name": "Bob", "hourly_rate": "62.5"},
        ],
        "time_entries": [
            {
                "id": "te-1",
                "project_id": "proj-hourly",
                "team_member_id": "tm-1",
                "hours": 5,
                "date": "2025-03-03",
                "billable": True,
                "client_billed": True,
            },
            {
                "id": "te-2",
                "project_id": "proj-hourly",
                "team_member_id": "tm-1",
                "hours": 3,
                "date": "2025-03-04",
                "billable": True,
                "client_billed": False,
            },
            {
                "id": "te-3",
                "project_id": "proj-hourly",
                "team_member_id": "tm-1",
                "hours": 2,
                "date": "2025-03-05",
                "billable": False,
            },
            {
                "id": "te-4",
                "project_id": "proj-retainer",
                "team_member_id": "tm-2",
                "hours": 6,
                "date": "2025-03-10",
                "billable": True,
            },
        ],
        "referrals": [
            {
                "id": "ref-1",
                "partner_id": "partner-1",
                "project_id": "proj-retainer",
                "status": "active",
                "commission_rate": 15,
                "commission_months": 3,
            }
        ],
    }


# Pytest configuration for different test types
def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on location."""
    for item in items:
        if "tests/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
