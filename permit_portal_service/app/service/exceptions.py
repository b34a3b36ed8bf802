"""
Custom exceptions for the Permit Portal service.
"""

class BasePermitPortalError(Exception):
    """Base class for exceptions in this module."""
    pass


# --- Caller-correctable errors ---

class ApplicationValidationError(BasePermitPortalError):
    """Raised when a request is missing data or carries data the record cannot accept."""
    pass

class InvalidStatusTransitionError(ApplicationValidationError):
    """Raised when the transition table does not allow the requested status change."""
    def __init__(self, application_id: str, current_status: str, requested_status: str, role: str):
        self.application_id = application_id
        self.current_status = current_status
        self.requested_status = requested_status
        self.role = role
        super().__init__(
            f"Cannot move application '{application_id}' from '{current_status}' "
            f"to '{requested_status}' as '{role}'."
        )


class NotFoundError(BasePermitPortalError):
    """Base class for lookups that matched nothing."""
    pass

class ApplicationNotFoundError(NotFoundError):
    """Raised when no application matches an id or reference number."""
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Application '{identifier}' not found.")

class BuildingPermitNotFoundError(NotFoundError):
    """Raised when an occupancy submission references an unknown building application."""
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Building Permit not found with Reference or ID: {identifier}")


class ConflictError(BasePermitPortalError):
    """Base class for uniqueness violations reported by the store."""
    pass

class DuplicateReferenceNumberError(ConflictError):
    """Raised when a reference number is already taken in the target collection."""
    def __init__(self, reference_no: str):
        self.reference_no = reference_no
        super().__init__(f"Reference number '{reference_no}' already exists.")


# --- Server-side errors ---

class InternalError(BasePermitPortalError):
    """Base class for failures the caller cannot correct."""
    pass

class StorageError(InternalError):
    """Raised when the record store fails unexpectedly."""
    pass
