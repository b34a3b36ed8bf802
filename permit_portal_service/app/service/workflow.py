# Status workflow rules for permit applications.
#
# Every function here works on an in-memory record and validates its whole
# input before touching it, so a raised error leaves the record unchanged.
# Persisting the result is the caller's job (one replace_one per operation).
import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import ValidationError

from permit_portal_service.app.models import (
    ActorRole, ApplicationDB, ApplicationStatus, DocumentRecord, PaymentDetails,
    PaymentMethod, PaymentStatus, RejectionDetails, WorkflowHistoryEntry,
)
from permit_portal_service.app.models.workflow_db import utc_now
from permit_portal_service.app.service.exceptions import (
    ApplicationValidationError, InvalidStatusTransitionError,
)

logger = logging.getLogger(__name__)

S = ApplicationStatus
MEO = ActorRole.MEO_ADMIN.value
BFP = ActorRole.BFP_ADMIN.value
MAYOR = ActorRole.MAYOR_ADMIN.value

CORRECTIVE_STATUSES: FrozenSet[str] = frozenset({S.REJECTED.value, S.FOR_CORRECTION.value})
RESUBMISSION_STATUSES: FrozenSet[str] = frozenset({S.SUBMITTED.value, S.PENDING_MEO.value})
# Once reached, the applicant can no longer pay against the record.
PAYMENT_CLOSED_STATUSES: FrozenSet[str] = frozenset({S.APPROVED.value, S.PERMIT_ISSUED.value})

REJECTION_PLACEHOLDER_COMMENT = "No comments provided."


def _returns(*roles: str) -> Dict[str, FrozenSet[str]]:
    return {
        S.REJECTED.value: frozenset(roles),
        S.FOR_CORRECTION.value: frozenset(roles),
    }


# current status -> requested status -> roles allowed to make the move
TRANSITIONS: Dict[str, Dict[str, FrozenSet[str]]] = {
    S.SUBMITTED.value: {
        S.PENDING_MEO.value: frozenset({MEO}),
        **_returns(MEO),
    },
    S.PENDING_MEO.value: {
        S.PAYMENT_PENDING.value: frozenset({MEO}),
        S.PENDING_BFP.value: frozenset({MEO}),
        **_returns(MEO),
    },
    S.PAYMENT_PENDING.value: {
        S.PENDING_MEO.value: frozenset({MEO}),
        **_returns(MEO),
    },
    S.PAYMENT_SUBMITTED.value: {
        S.PENDING_BFP.value: frozenset({MEO}),
        S.PAYMENT_PENDING.value: frozenset({MEO}),
        **_returns(MEO),
    },
    S.PENDING_BFP.value: {
        S.PENDING_MAYOR.value: frozenset({BFP}),
        S.PENDING_MEO.value: frozenset({BFP}),
        **_returns(BFP),
    },
    S.PENDING_MAYOR.value: {
        S.APPROVED.value: frozenset({MAYOR}),
        S.PENDING_MEO.value: frozenset({MAYOR}),
        **_returns(MAYOR),
    },
    S.APPROVED.value: {
        S.PERMIT_ISSUED.value: frozenset({MEO, MAYOR}),
    },
    S.REJECTED.value: {
        S.SUBMITTED.value: frozenset({MEO}),
        S.PENDING_MEO.value: frozenset({MEO}),
    },
    S.FOR_CORRECTION.value: {
        S.SUBMITTED.value: frozenset({MEO}),
        S.PENDING_MEO.value: frozenset({MEO}),
    },
    S.PERMIT_ISSUED.value: {},
}

# Extra moves open to a record the mayor has endorsed back to the engineering office
ENDORSED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    S.PERMIT_ISSUED.value: frozenset({MEO}),
}


def allowed_roles(current_status: str, requested_status: str) -> FrozenSet[str]:
    return TRANSITIONS.get(current_status, {}).get(requested_status, frozenset())


def validate_status(record: ApplicationDB, status: str) -> None:
    if status not in record.STATUS_VOCABULARY:
        raise ApplicationValidationError(
            f"Status '{status}' is not valid for {record.application_type} applications."
        )


def is_mayor_endorsed(record: ApplicationDB) -> bool:
    """True while the record sits in Pending MEO because the mayor sent it there."""
    if record.status != S.PENDING_MEO.value or not record.workflow_history:
        return False
    last = record.workflow_history[-1]
    return last.status == S.PENDING_MEO.value and last.acting_role == MAYOR


def check_transition(record: ApplicationDB, requested_status: str, role: str) -> None:
    roles = allowed_roles(record.status, requested_status)
    if is_mayor_endorsed(record):
        roles = roles | ENDORSED_TRANSITIONS.get(requested_status, frozenset())
    if role not in roles:
        raise InvalidStatusTransitionError(
            application_id=record.id,
            current_status=record.status,
            requested_status=requested_status,
            role=role,
        )


def _build_fee_sections(record: ApplicationDB, fee_sections: Mapping[str, Any]) -> Dict[str, Any]:
    """Parses each submitted section into the model the record declares for it."""
    built: Dict[str, Any] = {}
    fields = type(record).model_fields
    for name, value in fee_sections.items():
        if name not in record.FEE_SECTIONS:
            raise ApplicationValidationError(
                f"Section '{name}' cannot be edited on {record.application_type} applications."
            )
        try:
            built[name] = fields[name].annotation.model_validate(value)
        except ValidationError as e:
            raise ApplicationValidationError(f"Invalid '{name}' section: {e}") from e
    return built


def apply_status_transition(
    record: ApplicationDB,
    actor_id: str,
    actor_role: str,
    status: Optional[str] = None,
    comments: Optional[str] = None,
    missing_documents: Optional[List[str]] = None,
    fee_sections: Optional[Mapping[str, Any]] = None,
    enforce_transitions: bool = True,
) -> ApplicationDB:
    """Applies an admin action to ``record`` in place and returns it.

    Order of effects: status, rejection details, fee sections, history entry.
    Fee sections are replaced whole, never merged field by field.
    """
    if status is not None:
        validate_status(record, status)
        if enforce_transitions:
            check_transition(record, status, actor_role)
    new_sections = _build_fee_sections(record, fee_sections or {})

    now = utc_now()
    if status is not None:
        previous_status = record.status
        record.status = status
        if status in CORRECTIVE_STATUSES:
            record.rejection_details = RejectionDetails(
                comments=comments or REJECTION_PLACEHOLDER_COMMENT,
                missing_documents=list(missing_documents or []),
                is_resolved=False,
            )
        elif status in RESUBMISSION_STATUSES:
            record.rejection_details = RejectionDetails(comments="", missing_documents=[], is_resolved=True)

    for name, section in new_sections.items():
        setattr(record, name, section)

    if status is not None:
        record.workflow_history.append(WorkflowHistoryEntry(
            status=status,
            comments=comments or f"Status updated to {status} by admin.",
            updated_by=actor_id,
            acting_role=actor_role,
            timestamp=now,
        ))
        logger.info(f"Application {record.id} moved from '{previous_status}' to '{status}' by {actor_role} {actor_id}.")
    record.updated_at = now
    return record


def _ensure_payment_open(record: ApplicationDB) -> None:
    if record.status in PAYMENT_CLOSED_STATUSES:
        raise InvalidStatusTransitionError(
            application_id=record.id,
            current_status=record.status,
            requested_status=S.PAYMENT_SUBMITTED.value,
            role=ActorRole.USER.value,
        )


def apply_payment_submission(
    record: ApplicationDB,
    actor_id: str,
    method: str,
    proof_of_payment_file: Optional[str] = None,
    reference_number: Optional[str] = None,
    amount_paid: Optional[float] = None,
) -> ApplicationDB:
    """Records the applicant's chosen payment method; walk-in payments need no proof yet."""
    if method not in {m.value for m in PaymentMethod}:
        raise ApplicationValidationError(f"Unknown payment method '{method}'.")
    if method == PaymentMethod.ONLINE.value and not proof_of_payment_file:
        raise ApplicationValidationError("Proof of payment image is required for online transactions.")
    _ensure_payment_open(record)

    now = utc_now()
    record.payment_details = PaymentDetails(
        method=method,
        status=PaymentStatus.PENDING,
        reference_number=reference_number or None,
        proof_of_payment_file=proof_of_payment_file,
        date_submitted=now,
        amount_paid=amount_paid,
    )
    record.status = S.PAYMENT_SUBMITTED.value
    record.workflow_history.append(WorkflowHistoryEntry(
        status=S.PAYMENT_SUBMITTED.value,
        comments=f"User submitted {method} payment proof.",
        updated_by=actor_id,
        acting_role=ActorRole.USER,
        timestamp=now,
    ))
    record.updated_at = now
    return record


def apply_payment_proof_upload(record: ApplicationDB, actor_id: str, proof_of_payment_file: str) -> ApplicationDB:
    """Attaches a proof file to the payment method chosen earlier."""
    if not proof_of_payment_file:
        raise ApplicationValidationError("No image uploaded.")
    if not record.payment_details.method:
        raise ApplicationValidationError("Choose a payment method before uploading proof of payment.")
    _ensure_payment_open(record)

    now = utc_now()
    record.payment_details.proof_of_payment_file = proof_of_payment_file
    record.payment_details.status = PaymentStatus.PENDING.value # Verified later by the engineering office
    record.payment_details.date_submitted = now
    record.status = S.PAYMENT_SUBMITTED.value
    record.workflow_history.append(WorkflowHistoryEntry(
        status=S.PAYMENT_SUBMITTED.value,
        comments=f"User uploaded {record.payment_details.method} payment proof.",
        updated_by=actor_id,
        acting_role=ActorRole.USER,
        timestamp=now,
    ))
    record.updated_at = now
    return record


def append_documents(record: ApplicationDB, documents: List[DocumentRecord]) -> ApplicationDB:
    if not documents:
        raise ApplicationValidationError("No documents uploaded.")
    record.documents.extend(documents)
    record.updated_at = utc_now()
    return record
