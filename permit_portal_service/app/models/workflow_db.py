import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel
from .enums import ActorRole, PaymentMethod, PaymentStatus


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class WorkflowHistoryEntry(CamelModel):
    status: str
    comments: str = ""
    updated_by: Optional[str] = None # User id of the actor
    acting_role: Optional[ActorRole] = None
    timestamp: datetime.datetime = Field(default_factory=utc_now)


class RejectionDetails(CamelModel):
    comments: str = ""
    missing_documents: List[str] = Field(default_factory=list)
    is_resolved: bool = True # Nothing outstanding until a rejection populates it


class DocumentRecord(CamelModel):
    requirement_name: str
    file_name: str
    file_path: str # Relative path served under /uploads
    uploaded_at: datetime.datetime = Field(default_factory=utc_now)


class PaymentDetails(CamelModel):
    method: Optional[PaymentMethod] = None
    status: PaymentStatus = PaymentStatus.PENDING.value
    reference_number: Optional[str] = None # e.g. e-wallet transaction reference
    proof_of_payment_file: Optional[str] = None
    date_submitted: Optional[datetime.datetime] = None
    amount_paid: Optional[float] = None


class FeeItem(CamelModel):
    particular: str # e.g. "Filing Fee"
    amount: float


class FeesDetails(CamelModel):
    fees: List[FeeItem] = Field(default_factory=list)
    total_amount_due: float = 0
