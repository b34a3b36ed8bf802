# Role-specific dashboard queues.
#
# Membership depends only on the record's status and on which roles appear
# as ``acting_role`` in its workflow history; comment text is never inspected.
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from permit_portal_service.app.models import ActorRole, Application, ApplicantSummary, ApplicationStatus

S = ApplicationStatus

MEO_PENDING_STATUSES = frozenset({
    S.PENDING_MEO.value, S.PENDING_BFP.value, S.PENDING_MAYOR.value, S.PAYMENT_PENDING.value,
})
BFP_CLEARED_STATUSES = frozenset({S.PENDING_MAYOR.value, S.APPROVED.value, S.PERMIT_ISSUED.value})
# Statuses a record can move to after the mayor's office has handled it
MAYOR_FORWARDED_STATUSES = frozenset({
    S.PENDING_MEO.value, S.APPROVED.value, S.PERMIT_ISSUED.value, S.REJECTED.value,
})
MAYOR_COMPLETED_STATUSES = frozenset({S.APPROVED.value, S.PERMIT_ISSUED.value})


@dataclass
class RoleQueue:
    role: str
    applications: List[Application] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)


def _in_meo_queue(app: Application) -> bool:
    return True


def _in_bfp_queue(app: Application) -> bool:
    return app.status == S.PENDING_BFP.value or ActorRole.BFP_ADMIN.value in app.acted_roles()


def _in_mayor_queue(app: Application) -> bool:
    if app.status == S.PENDING_MAYOR.value:
        return True
    return app.status in MAYOR_FORWARDED_STATUSES and ActorRole.MAYOR_ADMIN.value in app.acted_roles()


def _count(apps: Iterable[Application], predicate: Callable[[Application], bool]) -> int:
    return sum(1 for app in apps if predicate(app))


def _meo_counters(apps: List[Application]) -> Dict[str, int]:
    return {
        "submitted": _count(apps, lambda a: a.status == S.SUBMITTED.value),
        "pending": _count(apps, lambda a: a.status in MEO_PENDING_STATUSES),
        "approved": _count(apps, lambda a: a.status == S.PERMIT_ISSUED.value),
        "total": len(apps),
    }


def _bfp_counters(apps: List[Application]) -> Dict[str, int]:
    return {
        "new": _count(apps, lambda a: a.status == S.PENDING_BFP.value),
        "cleared": _count(apps, lambda a: a.status in BFP_CLEARED_STATUSES),
        "returns": _count(apps, lambda a: a.status == S.REJECTED.value),
        "total": len(apps),
    }


def _mayor_counters(apps: List[Application]) -> Dict[str, int]:
    mayor = ActorRole.MAYOR_ADMIN.value
    return {
        "to_approve": _count(apps, lambda a: a.status == S.PENDING_MAYOR.value),
        "endorsed": _count(apps, lambda a: a.status == S.PENDING_MEO.value and mayor in a.acted_roles()),
        "completed": _count(apps, lambda a: a.status in MAYOR_COMPLETED_STATUSES and mayor in a.acted_roles()),
        "total": len(apps),
    }


QUEUE_RULES = {
    ActorRole.MEO_ADMIN.value: (_in_meo_queue, _meo_counters),
    ActorRole.BFP_ADMIN.value: (_in_bfp_queue, _bfp_counters),
    ActorRole.MAYOR_ADMIN.value: (_in_mayor_queue, _mayor_counters),
}


def matches_search(app: Application, query: str, applicant: Optional[ApplicantSummary] = None) -> bool:
    """Case-insensitive substring match on applicant name or reference number."""
    q = (query or "").strip().lower()
    if not q:
        return True
    owner = applicant.full_name.lower() if applicant else ""
    return q in owner or q in (app.reference_no or "").lower()


def build_role_queue(
    role: str,
    applications: Iterable[Application],
    search: Optional[str] = None,
    applicants: Optional[Mapping[str, ApplicantSummary]] = None,
) -> RoleQueue:
    """Selects the records a role's dashboard shows and computes its summary cards.

    Counters describe the whole queue; ``search`` only narrows the listed records.
    """
    if role not in QUEUE_RULES:
        raise ValueError(f"No dashboard queue for role '{role}'.")
    in_queue, counters = QUEUE_RULES[role]
    applicants = applicants or {}

    queue = [app for app in applications if in_queue(app)]
    listed = [app for app in queue if matches_search(app, search, applicants.get(app.applicant_id))]
    return RoleQueue(role=role, applications=listed, counters=counters(queue))
