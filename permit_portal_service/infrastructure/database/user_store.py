# Read-only access to applicant accounts owned by the user service
import logging
from typing import Dict, Iterable

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from permit_portal_service.app.config import settings
from permit_portal_service.app.models import ApplicantSummary
from permit_portal_service.app.service.exceptions import StorageError

logger = logging.getLogger(__name__)

APPLICANT_PROJECTION = {"_id": 0, "id": 1, "first_name": 1, "last_name": 1, "email": 1}


async def get_applicant_summaries(db: AsyncIOMotorDatabase, applicant_ids: Iterable[str]) -> Dict[str, ApplicantSummary]:
    ids = sorted(set(applicant_ids))
    if not ids:
        return {}
    try:
        cursor = db[settings.USERS_COLLECTION_NAME].find({"id": {"$in": ids}}, APPLICANT_PROJECTION)
        docs = await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Failed to load applicant names: {e}", exc_info=True)
        raise StorageError("Failed to load applicants.") from e
    summaries = {doc["id"]: ApplicantSummary(**doc) for doc in docs}
    missing = len(ids) - len(summaries)
    if missing:
        logger.info(f"{missing} applicant account(s) referenced by applications were not found.")
    return summaries
