import datetime
import uuid

import pytest

from permit_portal_service.app.models import (
    BuildingApplicationDB, OccupancyApplicationDB, WorkflowHistoryEntry,
)
from permit_portal_service.tests.factories import sample_building_sections, sample_occupancy_sections


def _with_history(record, status, history_roles, overrides):
    # history_roles: (acting_role, status) pairs appended after the submission entry
    for role, entry_status in history_roles:
        record.workflow_history.append(WorkflowHistoryEntry(status=entry_status, updated_by="admin-1", acting_role=role))
    if status:
        record.status = status
    for key, value in overrides.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def make_building():
    def _make(applicant_id: str = "applicant-1", status: str = None, history_roles=(), **overrides):
        record = BuildingApplicationDB.new_submission(applicant_id=applicant_id, **sample_building_sections())
        return _with_history(record, status, history_roles, overrides)
    return _make


@pytest.fixture
def make_occupancy():
    def _make(applicant_id: str = "applicant-1", building_permit: str = None, status: str = None, history_roles=(), **overrides):
        record = OccupancyApplicationDB.new_submission(
            applicant_id=applicant_id,
            building_permit=building_permit or uuid.uuid4().hex,
            **sample_occupancy_sections(),
        )
        return _with_history(record, status, history_roles, overrides)
    return _make


@pytest.fixture
def fixed_instant():
    return datetime.datetime(2023, 11, 14, 22, 13, 20, tzinfo=datetime.UTC) # 1700000000000 ms
