"""
Shared fixtures for module tests.

Module services commit on success and roll back on failure.  Inside the
per-test session a rollback returns to the last commit, so reference data
created in the same unit of work would vanish with it.

DESIGN RULE: Every fixture is opt-in.  No autouse.  A test that exercises a
failing module call requests ``committed_reference_data`` explicitly.
"""

import pytest


@pytest.fixture
def committed_reference_data(session, warehouse, second_warehouse, item, serial_item, batch_item):
    """Commit the standard warehouses and items before any module call."""
    session.commit()
