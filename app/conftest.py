"""
Pytest configuration shared by every app.

Auto-marks tests as unit, integration or e2e based on their filename.
"""

import pytest


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full ledger workflows)
    - test_posting.py, test_reports.py, test_commands.py, etc. → integration
    - test_models.py, test_locks.py, test_types.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_chart_of_accounts.py",
        "test_posting.py",
        "test_reports.py",
        "test_category_audit.py",
        "test_liability_migration.py",
        "test_savings_backfill.py",
        "test_commands.py",
        "test_tasks.py",
        "test_admin.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_locks.py",
        "test_types.py",
        "test_entry_builders.py",
        "test_exceptions.py",
        "test_helpers.py",
        "test_services.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
