# Command Handler Implementation
import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from opentelemetry import trace

from .models import (
    SubmitBuildingApplicationCommand, SubmitOccupancyApplicationCommand, UpdateApplicationStatusCommand,
    SubmitPaymentCommand, UploadPaymentProofCommand, UploadRevisionDocumentsCommand,
)
from permit_portal_service.app.config import settings
from permit_portal_service.app.models import (
    Application, BuildingApplicationDB, OccupancyApplicationDB, OwnerDetails,
)
from permit_portal_service.app.observability import (
    applications_submitted_counter, status_transitions_counter, payments_submitted_counter,
)
from permit_portal_service.app.service import workflow
from permit_portal_service.app.service.exceptions import ApplicationNotFoundError
from permit_portal_service.app.service.resolver import resolve_building_permit
from permit_portal_service.infrastructure.database import application_store


logger = logging.getLogger(__name__)


async def _load_application(db: AsyncIOMotorDatabase, application_id: str) -> Application:
    application = await application_store.get_application_by_id(db, application_id)
    if not application:
        logger.warning(f"Application ID: {application_id} not found.")
        raise ApplicationNotFoundError(application_id)
    return application


async def _save_application(db: AsyncIOMotorDatabase, application: Application) -> Application:
    saved = await application_store.replace_application(db, application)
    if not saved:
        raise ApplicationNotFoundError(application.id)
    return saved


async def handle_submit_building_application(
    db: AsyncIOMotorDatabase, command: SubmitBuildingApplicationCommand
) -> BuildingApplicationDB:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "SubmitBuildingApplicationCommand")
    current_span.set_attribute("command.id", command.command_id)

    logger.info(f"Handling SubmitBuildingApplicationCommand: {command.command_id} for applicant {command.applicant_id}")

    application = BuildingApplicationDB.new_submission(
        applicant_id=command.applicant_id,
        box1=command.box1,
        box2=command.box2,
        box3=command.box3,
        box4=command.box4,
    )
    await application_store.insert_application(db, application)

    applications_submitted_counter.add(1, {"application_type": application.application_type})
    current_span.add_event("BuildingApplicationSubmitted", {"application.id": application.id, "reference_no": application.reference_no})
    return application


async def handle_submit_occupancy_application(
    db: AsyncIOMotorDatabase, command: SubmitOccupancyApplicationCommand
) -> OccupancyApplicationDB:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "SubmitOccupancyApplicationCommand")
    current_span.set_attribute("command.id", command.command_id)

    logger.info(
        f"Handling SubmitOccupancyApplicationCommand: {command.command_id} for applicant {command.applicant_id}, "
        f"building permit '{command.building_permit_identifier}'"
    )

    # Raises before anything is written when the parent cannot be found.
    parent = await resolve_building_permit(db, command.building_permit_identifier)

    application = OccupancyApplicationDB.new_submission(
        applicant_id=command.applicant_id,
        building_permit=parent.id,
        permit_info=command.permit_info,
        owner_details=command.owner_details or OwnerDetails(),
        requirements_submitted=command.requirements_submitted,
        other_docs=command.other_docs,
        project_details=command.project_details,
        signatures=command.signatures,
    )
    await application_store.insert_application(db, application)

    applications_submitted_counter.add(1, {"application_type": application.application_type})
    current_span.add_event(
        "OccupancyApplicationSubmitted",
        {"application.id": application.id, "building_permit.id": parent.id, "reference_no": application.reference_no},
    )
    return application


async def handle_update_application_status(
    db: AsyncIOMotorDatabase, command: UpdateApplicationStatusCommand
) -> Application:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "UpdateApplicationStatusCommand")
    current_span.set_attribute("command.id", command.command_id)
    current_span.set_attribute("application.id", command.application_id)

    logger.info(
        f"Handling UpdateApplicationStatusCommand for application {command.application_id}: "
        f"status={command.status}, role={command.actor_role}, sections={sorted(command.fee_sections)}"
    )

    application = await _load_application(db, command.application_id)
    workflow.apply_status_transition(
        application,
        actor_id=command.actor_id,
        actor_role=command.actor_role,
        status=command.status,
        comments=command.comments,
        missing_documents=command.missing_documents,
        fee_sections=command.fee_sections,
        enforce_transitions=settings.ENFORCE_STATUS_TRANSITIONS,
    )
    saved = await _save_application(db, application)

    if command.status:
        status_transitions_counter.add(1, {"status": command.status, "role": command.actor_role})
        current_span.add_event("ApplicationStatusUpdated", {"application.id": saved.id, "status": command.status})
    return saved


async def handle_submit_payment(db: AsyncIOMotorDatabase, command: SubmitPaymentCommand) -> Application:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "SubmitPaymentCommand")
    current_span.set_attribute("application.id", command.application_id)

    logger.info(f"Handling SubmitPaymentCommand for application {command.application_id}: method={command.method}")

    application = await _load_application(db, command.application_id)
    workflow.apply_payment_submission(
        application,
        actor_id=command.actor_id,
        method=command.method,
        proof_of_payment_file=command.proof_of_payment_file,
        reference_number=command.reference_number,
        amount_paid=command.amount_paid,
    )
    saved = await _save_application(db, application)

    payments_submitted_counter.add(1, {"method": command.method})
    return saved


async def handle_upload_payment_proof(db: AsyncIOMotorDatabase, command: UploadPaymentProofCommand) -> Application:
    current_span = trace.get_current_span()
    current_span.set_attribute("command.name", "UploadPaymentProofCommand")
    current_span.set_attribute("application.id", command.application_id)

    logger.info(f"Handling UploadPaymentProofCommand for application {command.application_id}")

    application = await _load_application(db, command.application_id)
    workflow.apply_payment_proof_upload(application, command.actor_id, command.proof_of_payment_file)
    saved = await _save_application(db, application)

    payments_submitted_counter.add(1, {"method": saved.payment_details.method})
    return saved


async def handle_upload_revision_documents(
    db: AsyncIOMotorDatabase, command: UploadRevisionDocumentsCommand
) -> Application:
    logger.info(
        f"Handling UploadRevisionDocumentsCommand for application {command.application_id}: "
        f"{len(command.documents)} file(s)"
    )
    application = await _load_application(db, command.application_id)
    workflow.append_documents(application, command.documents)
    return await _save_application(db, application)
