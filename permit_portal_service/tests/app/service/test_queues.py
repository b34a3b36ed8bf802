import pytest

from permit_portal_service.app.models import ActorRole, ApplicantSummary, ApplicationStatus
from permit_portal_service.app.service.queues import build_role_queue, matches_search

S = ApplicationStatus
MEO = ActorRole.MEO_ADMIN.value
BFP = ActorRole.BFP_ADMIN.value
MAYOR = ActorRole.MAYOR_ADMIN.value


@pytest.fixture
def mixed_records(make_building, make_occupancy):
    return {
        "fresh": make_building(applicant_id="u1"),
        "at_meo": make_building(applicant_id="u2", status=S.PENDING_MEO.value, history_roles=((MEO, S.PENDING_MEO.value),)),
        "at_bfp": make_occupancy(applicant_id="u1", status=S.PENDING_BFP.value, history_roles=((MEO, S.PENDING_BFP.value),)),
        "bfp_cleared": make_building(
            applicant_id="u3", status=S.PENDING_MAYOR.value,
            history_roles=((MEO, S.PENDING_BFP.value), (BFP, S.PENDING_MAYOR.value)),
        ),
        "mayor_endorsed": make_building(
            applicant_id="u2", status=S.PENDING_MEO.value,
            history_roles=((BFP, S.PENDING_MAYOR.value), (MAYOR, S.PENDING_MEO.value)),
        ),
        "issued": make_occupancy(
            applicant_id="u3", status=S.PERMIT_ISSUED.value,
            history_roles=((BFP, S.PENDING_MAYOR.value), (MAYOR, S.APPROVED.value), (MEO, S.PERMIT_ISSUED.value)),
        ),
        "rejected_by_meo": make_building(applicant_id="u1", status=S.REJECTED.value, history_roles=((MEO, S.REJECTED.value),)),
    }


def test_meo_queue_contains_everything(mixed_records):
    queue = build_role_queue(MEO, mixed_records.values())

    assert len(queue.applications) == len(mixed_records)
    assert queue.counters == {"submitted": 1, "pending": 4, "approved": 1, "total": 7}


def test_bfp_queue_membership_and_counters(mixed_records):
    queue = build_role_queue(BFP, mixed_records.values())

    listed = {app.id for app in queue.applications}
    expected = {mixed_records[k].id for k in ("at_bfp", "bfp_cleared", "mayor_endorsed", "issued")}
    assert listed == expected
    assert queue.counters == {"new": 1, "cleared": 2, "returns": 0, "total": 4}


def test_mayor_queue_membership_and_counters(mixed_records):
    queue = build_role_queue(MAYOR, mixed_records.values())

    listed = {app.id for app in queue.applications}
    expected = {mixed_records[k].id for k in ("bfp_cleared", "mayor_endorsed", "issued")}
    assert listed == expected
    assert queue.counters == {"to_approve": 1, "endorsed": 1, "completed": 1, "total": 3}


def test_queue_membership_ignores_comment_text(make_building):
    record = make_building(status=S.PENDING_MEO.value)
    record.workflow_history[0].comments = "Forwarded by BFP to the Mayor"

    assert build_role_queue(BFP, [record]).applications == []
    assert build_role_queue(MAYOR, [record]).applications == []


def test_rejected_by_mayor_stays_in_mayor_queue(make_building):
    record = make_building(status=S.REJECTED.value, history_roles=((MAYOR, S.REJECTED.value),))
    queue = build_role_queue(MAYOR, [record])
    assert [app.id for app in queue.applications] == [record.id]


def test_search_narrows_listing_but_not_counters(mixed_records):
    applicants = {
        "u1": ApplicantSummary(id="u1", first_name="Juan", last_name="Dela Cruz"),
        "u2": ApplicantSummary(id="u2", first_name="Ana", last_name="Reyes"),
        "u3": ApplicantSummary(id="u3", first_name="Pedro", last_name="Santos"),
    }

    queue = build_role_queue(MEO, mixed_records.values(), search="reyes", applicants=applicants)

    assert {app.applicant_id for app in queue.applications} == {"u2"}
    assert queue.counters["total"] == 7


def test_search_by_reference_number_is_case_insensitive(make_building):
    record = make_building()
    assert matches_search(record, record.reference_no.lower())
    assert matches_search(record, "  ")
    assert not matches_search(record, "O-1")


def test_unknown_role_has_no_queue(make_building):
    with pytest.raises(ValueError):
        build_role_queue(ActorRole.USER.value, [make_building()])
