# Public tracking numbers for permit applications
import datetime
from typing import Dict

from .enums import ApplicationType

REFERENCE_PREFIXES: Dict[str, str] = {
    ApplicationType.BUILDING.value: "B",
    ApplicationType.OCCUPANCY.value: "O",
}


def generate_reference_no(application_type: str, created_at: datetime.datetime) -> str:
    """Returns ``{B|O}-{epochMillis}`` for the record's creation instant.

    Uniqueness is not guaranteed here; the unique index on ``reference_no`` in
    each collection rejects a second record created in the same millisecond.
    """
    prefix = REFERENCE_PREFIXES[ApplicationType(application_type).value]
    return f"{prefix}-{int(created_at.timestamp() * 1000)}"
