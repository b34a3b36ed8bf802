# API Router for Permit Applications
import datetime
import logging
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import Field

from permit_portal_service.app.config import settings
from permit_portal_service.app.api.dependencies import Actor, get_current_actor, require_admin
from permit_portal_service.app.models import (
    Application, ApplicantSummary, Box1, Box2, Box3, Box4, DocumentRecord,
    OccupancyProjectDetails, OwnerDetails, PermitInfo, Signatures,
)
from permit_portal_service.app.models.base import CamelModel
from permit_portal_service.app.service.commands import models as command_models
from permit_portal_service.app.service.commands.handlers import (
    handle_submit_building_application, handle_submit_occupancy_application, handle_update_application_status,
    handle_submit_payment, handle_upload_payment_proof, handle_upload_revision_documents,
)
from permit_portal_service.app.service.queries.handlers import (
    get_my_applications, track_application, list_applications_with_applicants, get_role_queue, get_applicant,
)
from permit_portal_service.app.service.exceptions import (
    ApplicationValidationError, NotFoundError, ConflictError,
)
from permit_portal_service.infrastructure.database.connection import get_db
from permit_portal_service.infrastructure.storage import uploads

logger = logging.getLogger(__name__)
router = APIRouter()

# --- Pydantic models for API request/response ---

class BuildingApplicationRequest(CamelModel):
    box1: Box1
    box2: Box2
    box3: Box3
    box4: Box4

class OccupancyApplicationRequest(CamelModel):
    building_permit_identifier: str
    permit_info: PermitInfo
    owner_details: Optional[OwnerDetails] = None
    requirements_submitted: List[str] = Field(default_factory=list)
    other_docs: Optional[str] = None
    project_details: OccupancyProjectDetails
    signatures: Signatures

class UpdateStatusRequest(CamelModel):
    status: Optional[str] = None
    comments: Optional[str] = None
    missing_documents: Optional[List[str]] = None
    # Building assessment/fees
    box5: Optional[Dict[str, Any]] = None
    box6: Optional[Dict[str, Any]] = None
    # Occupancy assessment/fees
    assessment_details: Optional[Dict[str, Any]] = None
    fees_details: Optional[Dict[str, Any]] = None

    def fee_sections(self) -> Dict[str, Any]:
        sections = ("box5", "box6", "assessment_details", "fees_details")
        return {name: getattr(self, name) for name in sections if getattr(self, name) is not None}

class SubmissionResponse(CamelModel):
    message: str
    id: str
    reference_no: str

class ApplicationSummaryResponse(CamelModel):
    id: str
    application_type: str
    reference_no: str
    created_at: datetime.datetime
    status: str

class ApplicationResponse(CamelModel):
    message: str
    application: Application

class AdminApplicationView(CamelModel):
    application: Application
    applicant: Optional[ApplicantSummary] = None

class AdminApplicationResponse(CamelModel):
    message: str
    application: Application
    applicant: Optional[ApplicantSummary] = None

class RoleQueueResponse(CamelModel):
    role: str
    counters: Dict[str, int]
    applications: List[AdminApplicationView]


def _raise_http_error(e: Exception, action: str) -> NoReturn:
    """Maps service exceptions to HTTP errors; unexpected failures never leak details."""
    if isinstance(e, ApplicationValidationError):
        logger.warning(f"Validation error while {action}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        logger.warning(f"Not found while {action}: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        logger.warning(f"Conflict while {action}: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    logger.error(f"Unexpected error while {action}: {e}", exc_info=True)
    raise HTTPException(status_code=500, detail=f"Server error while {action}.")


# --- Applicant Endpoints ---

@router.post(
    "/building",
    status_code=201,
    response_model=SubmissionResponse,
    summary="Submit a building permit application.",
)
async def submit_building_application_api(
    request_data: BuildingApplicationRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        cmd = command_models.SubmitBuildingApplicationCommand(
            applicant_id=actor.user_id,
            box1=request_data.box1,
            box2=request_data.box2,
            box3=request_data.box3,
            box4=request_data.box4,
        )
        application = await handle_submit_building_application(db, cmd)
    except Exception as e:
        _raise_http_error(e, "submitting building application")
    return SubmissionResponse(
        message="Building application submitted successfully",
        id=application.id,
        reference_no=application.reference_no,
    )


@router.post(
    "/occupancy",
    status_code=201,
    response_model=SubmissionResponse,
    summary="Submit an occupancy permit application for an existing building permit.",
)
async def submit_occupancy_application_api(
    request_data: OccupancyApplicationRequest = Body(...),
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        cmd = command_models.SubmitOccupancyApplicationCommand(
            applicant_id=actor.user_id,
            building_permit_identifier=request_data.building_permit_identifier,
            permit_info=request_data.permit_info,
            owner_details=request_data.owner_details,
            requirements_submitted=request_data.requirements_submitted,
            other_docs=request_data.other_docs,
            project_details=request_data.project_details,
            signatures=request_data.signatures,
        )
        application = await handle_submit_occupancy_application(db, cmd)
    except Exception as e:
        _raise_http_error(e, "submitting occupancy application")
    return SubmissionResponse(
        message="Occupancy application submitted successfully",
        id=application.id,
        reference_no=application.reference_no,
    )


@router.get(
    "/my-applications",
    response_model=List[ApplicationSummaryResponse],
    summary="List the caller's applications, newest first.",
)
async def list_my_applications_api(
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        return await get_my_applications(db, actor.user_id)
    except Exception as e:
        _raise_http_error(e, "listing applications")


@router.get(
    "/track/{reference_no}",
    response_model=Application,
    summary="Public status tracking by reference number.",
)
async def track_application_api(reference_no: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await track_application(db, reference_no)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Application not found. Please check your tracking number.")
    except Exception as e:
        _raise_http_error(e, "tracking application")


@router.post(
    "/{application_id}/payment",
    response_model=ApplicationResponse,
    summary="Submit a walk-in or online payment for an application.",
)
async def submit_payment_api(
    application_id: str,
    method: str = Form(...),
    reference_number: Optional[str] = Form(None, alias="referenceNumber"),
    amount_paid: Optional[float] = Form(None, alias="amountPaid"),
    file: Optional[UploadFile] = File(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    proof_path = None
    try:
        if file is not None:
            proof_path = await uploads.save_payment_proof(file)
        cmd = command_models.SubmitPaymentCommand(
            application_id=application_id,
            actor_id=actor.user_id,
            method=method,
            reference_number=reference_number,
            amount_paid=amount_paid,
            proof_of_payment_file=proof_path,
        )
        application = await handle_submit_payment(db, cmd)
    except Exception as e:
        await uploads.discard_uploads([proof_path])
        _raise_http_error(e, f"submitting payment for {application_id}")
    return ApplicationResponse(message="Payment proof submitted successfully", application=application)


@router.post(
    "/{application_id}/upload-payment",
    response_model=ApplicationResponse,
    summary="Upload proof of payment against the chosen payment method.",
)
async def upload_payment_proof_api(
    application_id: str,
    file: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    proof_path = None
    try:
        proof_path = await uploads.save_payment_proof(file)
        cmd = command_models.UploadPaymentProofCommand(
            application_id=application_id,
            actor_id=actor.user_id,
            proof_of_payment_file=proof_path,
        )
        application = await handle_upload_payment_proof(db, cmd)
    except Exception as e:
        await uploads.discard_uploads([proof_path])
        _raise_http_error(e, f"uploading payment proof for {application_id}")
    return ApplicationResponse(message="Payment proof uploaded successfully.", application=application)


@router.post(
    "/{application_id}/upload-revision",
    response_model=ApplicationResponse,
    summary="Upload revised or missing supporting documents.",
)
async def upload_revision_documents_api(
    application_id: str,
    files: List[UploadFile] = File(...),
    requirement_names: Optional[List[str]] = Form(None, alias="requirementNames"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if len(files) > settings.MAX_REVISION_FILES:
        raise HTTPException(status_code=400, detail=f"At most {settings.MAX_REVISION_FILES} files can be uploaded at once.")
    if requirement_names and len(requirement_names) != len(files):
        raise HTTPException(status_code=400, detail="Provide one requirement name per uploaded file.")
    documents: List[DocumentRecord] = []
    try:
        # The whole batch is checked before anything is written.
        for upload in files:
            uploads.validate_revision_document(upload)
        for index, upload in enumerate(files):
            stored_path = await uploads.save_upload(upload, uploads.DOCUMENTS_SUBDIR)
            documents.append(DocumentRecord(
                requirement_name=requirement_names[index] if requirement_names else upload.filename,
                file_name=upload.filename,
                file_path=stored_path,
            ))
        cmd = command_models.UploadRevisionDocumentsCommand(
            application_id=application_id,
            actor_id=actor.user_id,
            documents=documents,
        )
        application = await handle_upload_revision_documents(db, cmd)
    except Exception as e:
        await uploads.discard_uploads(d.file_path for d in documents)
        _raise_http_error(e, f"uploading revision documents for {application_id}")
    return ApplicationResponse(message="Documents uploaded successfully.", application=application)


# --- Admin Endpoints ---

@router.get(
    "/all",
    response_model=List[AdminApplicationView],
    summary="List every application with its applicant (admin only).",
)
async def list_all_applications_api(
    actor: Actor = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        applications, applicants = await list_applications_with_applicants(db)
    except Exception as e:
        _raise_http_error(e, "listing all applications")
    return [AdminApplicationView(application=a, applicant=applicants.get(a.applicant_id)) for a in applications]


@router.get(
    "/queue",
    response_model=RoleQueueResponse,
    summary="The caller's role dashboard: queued applications and summary counters.",
)
async def get_role_queue_api(
    search: Optional[str] = Query(None),
    actor: Actor = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        queue, applicants = await get_role_queue(db, actor.role, search=search)
    except Exception as e:
        _raise_http_error(e, f"building {actor.role} queue")
    return RoleQueueResponse(
        role=queue.role,
        counters=queue.counters,
        applications=[AdminApplicationView(application=a, applicant=applicants.get(a.applicant_id)) for a in queue.applications],
    )


@router.put(
    "/{application_id}/status",
    response_model=AdminApplicationResponse,
    summary="Change an application's status and/or its assessment sections (admin only).",
)
async def update_application_status_api(
    application_id: str,
    request_data: UpdateStatusRequest = Body(...),
    actor: Actor = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        cmd = command_models.UpdateApplicationStatusCommand(
            application_id=application_id,
            actor_id=actor.user_id,
            actor_role=actor.role,
            status=request_data.status,
            comments=request_data.comments,
            missing_documents=request_data.missing_documents,
            fee_sections=request_data.fee_sections(),
        )
        application = await handle_update_application_status(db, cmd)
        applicant = await get_applicant(db, application.applicant_id)
    except Exception as e:
        _raise_http_error(e, f"updating application {application_id}")
    return AdminApplicationResponse(message="Application updated successfully", application=application, applicant=applicant)
