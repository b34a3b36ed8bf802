# Operations for the Building and Occupancy application collections
import datetime
import logging
import re
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from permit_portal_service.app.config import settings
from permit_portal_service.app.models import (
    APPLICATION_MODELS, Application, ApplicationType, BuildingApplicationDB,
)
from permit_portal_service.app.service.exceptions import DuplicateReferenceNumberError, StorageError

logger = logging.getLogger(__name__)

# Internal ids are uuid4 hex strings.
INTERNAL_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

SUMMARY_PROJECTION = {"_id": 0, "id": 1, "application_type": 1, "reference_no": 1, "created_at": 1, "status": 1}


def collection_name(application_type: str) -> str:
    if application_type == ApplicationType.BUILDING.value:
        return settings.BUILDING_COLLECTION_NAME
    return settings.OCCUPANCY_COLLECTION_NAME


def is_internal_id(identifier: str) -> bool:
    return bool(INTERNAL_ID_PATTERN.match(identifier or ""))


def reference_no_query(reference_no: str) -> Dict[str, Any]:
    """Exact, case-insensitive match; the input is escaped so it never acts as a pattern."""
    return {"reference_no": {"$regex": f"^{re.escape(reference_no)}$", "$options": "i"}}


def _bson_safe(value: Any) -> Any:
    # BSON has no calendar-date type; plain dates are stored as ISO strings.
    if isinstance(value, dict):
        return {key: _bson_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_bson_safe(item) for item in value]
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value.isoformat()
    return value


def _to_document(application: Application) -> Dict[str, Any]:
    return _bson_safe(application.model_dump())


def _to_model(application_type: str, doc: Dict[str, Any]) -> Application:
    doc.pop("_id", None)
    return APPLICATION_MODELS[application_type].model_validate(doc)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    for application_type in APPLICATION_MODELS:
        collection = db[collection_name(application_type)]
        await collection.create_index([("id", ASCENDING)], unique=True)
        await collection.create_index([("reference_no", ASCENDING)], unique=True)
        await collection.create_index([("applicant_id", ASCENDING), ("created_at", DESCENDING)])
    logger.info("Application collection indexes ensured.")


async def insert_application(db: AsyncIOMotorDatabase, application: Application) -> Application:
    """Adds a new application record; the reference number must already be assigned."""
    try:
        await db[collection_name(application.application_type)].insert_one(_to_document(application))
    except DuplicateKeyError as e:
        logger.warning(f"Duplicate key inserting {application.application_type} application {application.reference_no}: {e}")
        raise DuplicateReferenceNumberError(application.reference_no) from e
    except PyMongoError as e:
        logger.error(f"Failed to insert application {application.id}: {e}", exc_info=True)
        raise StorageError("Failed to store application.") from e
    logger.info(f"Added {application.application_type} application ID: {application.id} ({application.reference_no})")
    return application


async def replace_application(db: AsyncIOMotorDatabase, application: Application) -> Optional[Application]:
    """Writes the full record in one single-document operation."""
    try:
        result = await db[collection_name(application.application_type)].replace_one(
            {"id": application.id},
            _to_document(application),
        )
    except PyMongoError as e:
        logger.error(f"Failed to save application {application.id}: {e}", exc_info=True)
        raise StorageError("Failed to save application.") from e
    if result.matched_count == 0:
        # Deleted between read and write; the caller maps None to not found.
        logger.warning(f"Application ID: {application.id} disappeared before it could be saved.")
        return None
    logger.info(f"Saved application ID: {application.id} with status '{application.status}'.")
    return application


async def _find_one(db: AsyncIOMotorDatabase, application_type: str, query: Dict[str, Any]) -> Optional[Application]:
    try:
        doc = await db[collection_name(application_type)].find_one(query)
    except PyMongoError as e:
        logger.error(f"Failed to query {application_type} applications: {e}", exc_info=True)
        raise StorageError("Failed to read applications.") from e
    return _to_model(application_type, doc) if doc else None


async def get_application_by_id(db: AsyncIOMotorDatabase, application_id: str) -> Optional[Application]:
    """Looks the id up in every variant's collection."""
    for application_type in APPLICATION_MODELS:
        application = await _find_one(db, application_type, {"id": application_id})
        if application:
            return application
    return None


async def find_application_by_reference_no(db: AsyncIOMotorDatabase, reference_no: str) -> Optional[Application]:
    for application_type in APPLICATION_MODELS:
        application = await _find_one(db, application_type, reference_no_query(reference_no))
        if application:
            return application
    return None


async def find_building_by_id(db: AsyncIOMotorDatabase, application_id: str) -> Optional[BuildingApplicationDB]:
    return await _find_one(db, ApplicationType.BUILDING.value, {"id": application_id})


async def find_building_by_reference_no(db: AsyncIOMotorDatabase, reference_no: str) -> Optional[BuildingApplicationDB]:
    return await _find_one(db, ApplicationType.BUILDING.value, reference_no_query(reference_no))


async def list_applications_for_applicant(db: AsyncIOMotorDatabase, applicant_id: str) -> List[Dict[str, Any]]:
    """Summary projections of one applicant's records across both variants, newest first."""
    summaries: List[Dict[str, Any]] = []
    try:
        for application_type in APPLICATION_MODELS:
            cursor = db[collection_name(application_type)].find(
                {"applicant_id": applicant_id}, SUMMARY_PROJECTION
            ).sort("created_at", -1)
            summaries.extend(await cursor.to_list(length=None))
    except PyMongoError as e:
        logger.error(f"Failed to list applications for applicant {applicant_id}: {e}", exc_info=True)
        raise StorageError("Failed to list applications.") from e
    summaries.sort(key=lambda s: s["created_at"], reverse=True)
    return summaries


async def list_all_applications(db: AsyncIOMotorDatabase) -> List[Application]:
    applications: List[Application] = []
    try:
        for application_type in APPLICATION_MODELS:
            cursor = db[collection_name(application_type)].find({}).sort("created_at", -1)
            docs = await cursor.to_list(length=None)
            applications.extend(_to_model(application_type, doc) for doc in docs)
    except PyMongoError as e:
        logger.error(f"Failed to list applications: {e}", exc_info=True)
        raise StorageError("Failed to list applications.") from e
    applications.sort(key=lambda a: a.created_at, reverse=True)
    return applications
