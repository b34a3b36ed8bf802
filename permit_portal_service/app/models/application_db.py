import datetime
import uuid
from typing import ClassVar, FrozenSet, List, Optional, Set, Tuple

from pydantic import Field

from .base import CamelModel
from .enums import ActorRole, ApplicationStatus
from .reference_numbers import generate_reference_no
from .workflow_db import (
    DocumentRecord, PaymentDetails, RejectionDetails, WorkflowHistoryEntry, utc_now,
)

ALL_STATUSES: FrozenSet[str] = frozenset(s.value for s in ApplicationStatus)


class ApplicationDB(CamelModel):
    """Lifecycle fields shared by every permit application variant."""

    STATUS_VOCABULARY: ClassVar[FrozenSet[str]] = ALL_STATUSES
    # Sub-sections admins may replace while assessing the application
    FEE_SECTIONS: ClassVar[Tuple[str, ...]] = ()

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    applicant_id: str
    application_type: str
    reference_no: Optional[str] = None

    status: str = ApplicationStatus.SUBMITTED.value
    rejection_details: RejectionDetails = Field(default_factory=RejectionDetails)
    documents: List[DocumentRecord] = Field(default_factory=list)
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)
    workflow_history: List[WorkflowHistoryEntry] = Field(default_factory=list)

    created_at: datetime.datetime = Field(default_factory=utc_now)
    updated_at: datetime.datetime = Field(default_factory=utc_now)

    def assign_reference_no(self) -> str:
        # Only the first call on an unsaved record assigns a number.
        if not self.reference_no:
            self.reference_no = generate_reference_no(self.application_type, self.created_at)
        return self.reference_no

    def acted_roles(self) -> Set[str]:
        return {entry.acting_role for entry in self.workflow_history if entry.acting_role}

    @classmethod
    def new_submission(cls, applicant_id: str, **form_sections):
        record = cls(applicant_id=applicant_id, **form_sections)
        record.workflow_history.append(WorkflowHistoryEntry(
            status=ApplicationStatus.SUBMITTED.value,
            comments="Application submitted by user.",
            updated_by=applicant_id,
            acting_role=ActorRole.USER,
            timestamp=record.created_at,
        ))
        record.assign_reference_no()
        return record
