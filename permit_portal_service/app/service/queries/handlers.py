# Read-side handlers for applicants, the public tracker and admin dashboards
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from permit_portal_service.app.models import Application, ApplicantSummary
from permit_portal_service.app.service.exceptions import ApplicationNotFoundError
from permit_portal_service.app.service.queues import RoleQueue, build_role_queue
from permit_portal_service.infrastructure.database import application_store, user_store

logger = logging.getLogger(__name__)


async def get_my_applications(db: AsyncIOMotorDatabase, applicant_id: str) -> List[Dict[str, Any]]:
    return await application_store.list_applications_for_applicant(db, applicant_id)


async def track_application(db: AsyncIOMotorDatabase, reference_no: str) -> Application:
    application = await application_store.find_application_by_reference_no(db, reference_no.strip())
    if not application:
        logger.info(f"Tracking lookup for '{reference_no}' matched nothing.")
        raise ApplicationNotFoundError(reference_no)
    return application


async def list_applications_with_applicants(
    db: AsyncIOMotorDatabase,
) -> Tuple[List[Application], Mapping[str, ApplicantSummary]]:
    applications = await application_store.list_all_applications(db)
    applicants = await user_store.get_applicant_summaries(db, (a.applicant_id for a in applications))
    return applications, applicants


async def get_role_queue(
    db: AsyncIOMotorDatabase, role: str, search: Optional[str] = None
) -> Tuple[RoleQueue, Mapping[str, ApplicantSummary]]:
    applications, applicants = await list_applications_with_applicants(db)
    queue = build_role_queue(role, applications, search=search, applicants=applicants)
    logger.info(f"Built {role} queue: {len(queue.applications)} listed, counters={queue.counters}")
    return queue, applicants


async def get_applicant(db: AsyncIOMotorDatabase, applicant_id: str) -> Optional[ApplicantSummary]:
    applicants = await user_store.get_applicant_summaries(db, [applicant_id])
    return applicants.get(applicant_id)
