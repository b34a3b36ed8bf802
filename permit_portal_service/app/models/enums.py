from enum import Enum


class ApplicationType(str, Enum):
    BUILDING = "Building"
    OCCUPANCY = "Occupancy"


class ApplicationStatus(str, Enum):
    SUBMITTED = "Submitted"
    PENDING_MEO = "Pending MEO"
    PENDING_BFP = "Pending BFP"
    PENDING_MAYOR = "Pending Mayor"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    FOR_CORRECTION = "For Correction"
    PAYMENT_PENDING = "Payment Pending"
    PAYMENT_SUBMITTED = "Payment Submitted"
    PERMIT_ISSUED = "Permit Issued"


class ActorRole(str, Enum):
    MEO_ADMIN = "meoadmin" # Municipal Engineering Office
    BFP_ADMIN = "bfpadmin" # Bureau of Fire Protection
    MAYOR_ADMIN = "mayoradmin"
    USER = "user" # Applicant


ADMIN_ROLES = frozenset({ActorRole.MEO_ADMIN, ActorRole.BFP_ADMIN, ActorRole.MAYOR_ADMIN})


class PaymentMethod(str, Enum):
    WALK_IN = "Walk-In"
    ONLINE = "Online"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    FAILED = "Failed"
