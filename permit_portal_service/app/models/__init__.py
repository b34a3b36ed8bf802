from typing import Dict, Type, Union

from .enums import ApplicationType, ApplicationStatus, ActorRole, ADMIN_ROLES, PaymentMethod, PaymentStatus
from .workflow_db import WorkflowHistoryEntry, RejectionDetails, DocumentRecord, PaymentDetails, FeeItem, FeesDetails
from .application_db import ApplicationDB, ALL_STATUSES
from .building_application_db import BuildingApplicationDB, Box1, Box2, Box3, Box4, Box5
from .occupancy_application_db import OccupancyApplicationDB, PermitInfo, OwnerDetails, OccupancyProjectDetails, Signatures, AssessmentDetails
from .applicant import ApplicantSummary
from .reference_numbers import generate_reference_no

# Every lifecycle operation works against this sum type.
Application = Union[BuildingApplicationDB, OccupancyApplicationDB]

APPLICATION_MODELS: Dict[str, Type[ApplicationDB]] = {
    ApplicationType.BUILDING.value: BuildingApplicationDB,
    ApplicationType.OCCUPANCY.value: OccupancyApplicationDB,
}

__all__ = [
    "ApplicationType",
    "ApplicationStatus",
    "ActorRole",
    "ADMIN_ROLES",
    "PaymentMethod",
    "PaymentStatus",
    "WorkflowHistoryEntry",
    "RejectionDetails",
    "DocumentRecord",
    "PaymentDetails",
    "FeeItem",
    "FeesDetails",
    "ApplicationDB",
    "ALL_STATUSES",
    "BuildingApplicationDB",
    "Box1",
    "Box2",
    "Box3",
    "Box4",
    "Box5",
    "OccupancyApplicationDB",
    "PermitInfo",
    "OwnerDetails",
    "OccupancyProjectDetails",
    "Signatures",
    "AssessmentDetails",
    "ApplicantSummary",
    "Application",
    "APPLICATION_MODELS",
    "generate_reference_no",
]
