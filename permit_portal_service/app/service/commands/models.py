# Pydantic models for Commands
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import uuid

from permit_portal_service.app.models import (
    Box1, Box2, Box3, Box4, DocumentRecord, OccupancyProjectDetails, OwnerDetails, PermitInfo, Signatures,
)

class BaseCommand(BaseModel):
    command_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

# --- Submission Commands ---

class SubmitBuildingApplicationCommand(BaseCommand):
    applicant_id: str
    box1: Box1
    box2: Box2
    box3: Box3
    box4: Box4

class SubmitOccupancyApplicationCommand(BaseCommand):
    applicant_id: str
    building_permit_identifier: str # Internal id or reference number of the parent building application
    permit_info: PermitInfo
    owner_details: Optional[OwnerDetails] = None
    requirements_submitted: List[str] = Field(default_factory=list)
    other_docs: Optional[str] = None
    project_details: OccupancyProjectDetails
    signatures: Signatures

# --- Admin Commands ---

class UpdateApplicationStatusCommand(BaseCommand):
    application_id: str
    actor_id: str
    actor_role: str
    status: Optional[str] = None
    comments: Optional[str] = None
    missing_documents: Optional[List[str]] = None
    # Fee/assessment sections, validated against the variant being updated
    fee_sections: Dict[str, Any] = Field(default_factory=dict)

# --- Applicant Commands ---

class SubmitPaymentCommand(BaseCommand):
    application_id: str
    actor_id: str
    method: str
    reference_number: Optional[str] = None
    amount_paid: Optional[float] = None
    proof_of_payment_file: Optional[str] = None # Stored path, absent for walk-in payments

class UploadPaymentProofCommand(BaseCommand):
    application_id: str
    actor_id: str
    proof_of_payment_file: str

class UploadRevisionDocumentsCommand(BaseCommand):
    application_id: str
    actor_id: str
    documents: List[DocumentRecord]
