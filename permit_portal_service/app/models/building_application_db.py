import datetime
from typing import ClassVar, FrozenSet, List, Literal, Optional, Tuple

from pydantic import Field

from .application_db import ALL_STATUSES, ApplicationDB
from .base import CamelModel
from .enums import ApplicationType
from .workflow_db import FeesDetails, utc_now


# Box 1: Owner, Enterprise, Location, Scope, Occupancy, Project Stats
class OwnerName(CamelModel):
    last_name: str
    first_name: str
    middle_initial: Optional[str] = None

class EnterpriseAddress(CamelModel):
    no: Optional[str] = None
    street: Optional[str] = None
    barangay: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    tel_no: Optional[str] = None

class Enterprise(CamelModel):
    form_of_ownership: Optional[str] = None
    project_title: Optional[str] = None
    address: EnterpriseAddress = Field(default_factory=EnterpriseAddress)

class LotLocation(CamelModel):
    lot_no: str
    blk_no: Optional[str] = None
    tct_no: str # Transfer Certificate of Title
    tax_dec_no: str
    street: str
    barangay: str
    city: str

class OccupancyClassification(CamelModel):
    group: str
    classified: Optional[str] = None

class BuildingProjectDetails(CamelModel):
    number_of_units: Optional[int] = None
    total_estimated_cost: float
    total_floor_area: Optional[float] = None
    lot_area: Optional[float] = None
    proposed_construction: Optional[datetime.date] = None
    expected_completion: Optional[datetime.date] = None

class Box1(CamelModel):
    owner: OwnerName
    enterprise: Enterprise = Field(default_factory=Enterprise)
    location: LotLocation
    scope_of_work: List[str] = Field(default_factory=list)
    occupancy: OccupancyClassification
    project_details: BuildingProjectDetails


# Box 2: Architect / Civil Engineer
class Box2(CamelModel):
    name: str
    date: Optional[datetime.date] = None
    address: Optional[str] = None
    prc_no: str
    validity: Optional[datetime.date] = None
    ptr_no: str
    ptr_date: Optional[datetime.date] = None
    issued_at: Optional[str] = None
    tin: Optional[str] = None


# Box 3: Applicant signature
class Box3(CamelModel):
    name: str
    date: Optional[datetime.date] = None
    address: Optional[str] = None
    ctc_no: Optional[str] = None
    date_issued: Optional[datetime.date] = None
    place_issued: Optional[str] = None


# Box 4: Lot owner consent
class Box4(CamelModel):
    name: Optional[str] = None
    date: Optional[datetime.date] = None
    address: Optional[str] = None
    tct_no: Optional[str] = None
    tax_dec_no: Optional[str] = None
    place_issued: Optional[str] = None


# Box 5: Assessment and notarial details, filled by the engineering office
class Box5(CamelModel):
    assessed_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    noted_by: Optional[str] = None
    date: datetime.datetime = Field(default_factory=utc_now)
    doc_no: Optional[str] = None
    page_no: Optional[str] = None
    book_no: Optional[str] = None
    series_of: Optional[str] = None
    notary_public_date: Optional[datetime.date] = None


class PermitIssuance(CamelModel):
    permit_number: Optional[str] = None
    issued_at: Optional[datetime.datetime] = None
    issued_by: Optional[str] = None


class BuildingApplicationDB(ApplicationDB):
    STATUS_VOCABULARY: ClassVar[FrozenSet[str]] = ALL_STATUSES
    FEE_SECTIONS: ClassVar[Tuple[str, ...]] = ("box5", "box6")

    application_type: Literal["Building"] = ApplicationType.BUILDING.value

    box1: Box1
    box2: Box2
    box3: Box3
    box4: Box4
    box5: Box5 = Field(default_factory=Box5)
    box6: FeesDetails = Field(default_factory=FeesDetails) # Assessed fees
    permit: PermitIssuance = Field(default_factory=PermitIssuance)
