# Locates the parent building application named by an occupancy submission
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from permit_portal_service.app.models import BuildingApplicationDB
from permit_portal_service.app.service.exceptions import ApplicationValidationError, BuildingPermitNotFoundError
from permit_portal_service.infrastructure.database import application_store

logger = logging.getLogger(__name__)


async def resolve_building_permit(db: AsyncIOMotorDatabase, identifier: str) -> BuildingApplicationDB:
    """Finds one building application by internal id or by reference number.

    The id lookup runs first and wins if both could match. Reference numbers
    match exactly, ignoring case; partial matches never resolve.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        raise ApplicationValidationError("A building permit id or reference number is required.")

    if application_store.is_internal_id(identifier.lower()):
        building = await application_store.find_building_by_id(db, identifier.lower())
        if building:
            logger.debug(f"Resolved building permit '{identifier}' by id.")
            return building

    building = await application_store.find_building_by_reference_no(db, identifier)
    if building:
        logger.debug(f"Resolved building permit '{identifier}' by reference number {building.reference_no}.")
        return building

    logger.warning(f"No building application matches '{identifier}'.")
    raise BuildingPermitNotFoundError(identifier)
