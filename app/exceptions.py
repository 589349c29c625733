"""
app/exceptions.py — Domain errors raised by the service layer.

Route handlers translate these into HTTP responses; services never
import FastAPI.

Hierarchy:
    LeadDeskError
    +-- NotFoundError
    +-- PermissionDeniedError
    +-- InvalidStateError
    +-- ValidationFailedError
    +-- AuthError
        +-- InvalidCredentialsError
        +-- InactiveAccountError
    +-- DuplicateUserError
"""


class LeadDeskError(Exception):
    """Base class for all service-level errors."""


class NotFoundError(LeadDeskError):
    def __init__(self, resource: str, resource_id: int | str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} not found.")


class PermissionDeniedError(LeadDeskError):
    pass


class InvalidStateError(LeadDeskError):
    """An operation is not allowed in the record's current state."""


class ValidationFailedError(LeadDeskError):
    pass


class AuthError(LeadDeskError):
    pass


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class InactiveAccountError(AuthError):
    def __init__(self, message: str = "Account is deactivated"):
        super().__init__(message)


class DuplicateUserError(LeadDeskError):
    pass
