from fastapi import HTTPException, status
from app.messages import ja

class AppError(Exception):
    """Base application error class."""
    pass


# --- Offboarding domain errors ---

class OffboardingError(AppError):
    """Base class for offboarding workflow errors."""
    pass

class OffboardingNotFoundError(OffboardingError):
    """When an offboarding record does not exist in the organization."""
    def __init__(self, message: str = ja.OFFBOARDING_NOT_FOUND):
        super().__init__(message)

class OffboardingNotRestorableError(OffboardingError):
    """When restoration is attempted on a record that is not completed."""
    def __init__(self, message: str = ja.OFFBOARDING_NOT_COMPLETED):
        super().__init__(message)

class RestoreWindowExpiredError(OffboardingError):
    """When the restoration deadline has passed."""
    def __init__(self, message: str = ja.OFFBOARDING_RESTORE_WINDOW_EXPIRED):
        super().__init__(message)

class OffboardingAlreadyRestoredError(OffboardingError):
    """When the user of the record has already been restored."""
    def __init__(self, message: str = ja.OFFBOARDING_ALREADY_RESTORED):
        super().__init__(message)

class OffboardingAlreadyInProgressError(OffboardingError):
    """When another pending/in_progress run exists for the same user."""
    def __init__(self, message: str = ja.OFFBOARDING_ALREADY_IN_PROGRESS):
        super().__init__(message)

class InvalidOffboardingStatusError(OffboardingError):
    """When execution is requested for a record that is not pending."""
    def __init__(self, message: str = ja.OFFBOARDING_NOT_PENDING):
        super().__init__(message)


# Common HTTP-related exceptions used across the API endpoints
class BadRequestException(HTTPException):
    def __init__(self, detail: str = ja.EXC_BAD_REQUEST):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class NotFoundException(HTTPException):
    def __init__(self, detail: str = ja.EXC_NOT_FOUND):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ForbiddenException(HTTPException):
    def __init__(self, detail: str = ja.EXC_FORBIDDEN):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class ConflictException(HTTPException):
    def __init__(self, detail: str = ja.EXC_CONFLICT):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class InternalServerException(HTTPException):
    def __init__(self, detail: str = ja.EXC_INTERNAL_ERROR):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class GoneException(HTTPException):
    def __init__(self, detail: str = ja.EXC_GONE):
        super().__init__(status_code=status.HTTP_410_GONE, detail=detail)
