import datetime
from typing import ClassVar, FrozenSet, List, Literal, Optional, Tuple

from pydantic import Field

from .application_db import ALL_STATUSES, ApplicationDB
from .base import CamelModel
from .enums import ApplicationStatus, ApplicationType
from .workflow_db import FeesDetails, utc_now


class PermitInfo(CamelModel):
    building_permit_no: str
    building_permit_date: datetime.date
    fsec_no: str # Fire Safety Evaluation Clearance
    fsec_date: datetime.date

class OwnerDetails(CamelModel):
    last_name: Optional[str] = None
    given_name: Optional[str] = None
    middle_initial: Optional[str] = None
    address: Optional[str] = None
    zip: Optional[str] = None
    tel_no: Optional[str] = None

class OccupancyProjectDetails(CamelModel):
    project_name: str
    project_location: str
    occupancy_use: str
    no_storeys: int
    no_units: Optional[int] = None
    total_floor_area: Optional[float] = None
    date_completion: datetime.date

class Signatures(CamelModel):
    owner_name: str
    inspector_name: str
    engineer_name: str

class AssessmentDetails(CamelModel):
    assessed_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    noted_by: Optional[str] = None
    date: datetime.datetime = Field(default_factory=utc_now)


class OccupancyApplicationDB(ApplicationDB):
    # Occupancy fees are settled without a separate "Payment Pending" step.
    STATUS_VOCABULARY: ClassVar[FrozenSet[str]] = ALL_STATUSES - {ApplicationStatus.PAYMENT_PENDING.value}
    FEE_SECTIONS: ClassVar[Tuple[str, ...]] = ("assessment_details", "fees_details")

    application_type: Literal["Occupancy"] = ApplicationType.OCCUPANCY.value
    building_permit: str # Id of the parent Building application, fixed at creation

    permit_info: PermitInfo
    owner_details: OwnerDetails = Field(default_factory=OwnerDetails)
    requirements_submitted: List[str] = Field(default_factory=list)
    other_docs: Optional[str] = None
    project_details: OccupancyProjectDetails
    signatures: Signatures
    assessment_details: AssessmentDetails = Field(default_factory=AssessmentDetails)
    fees_details: FeesDetails = Field(default_factory=FeesDetails)
