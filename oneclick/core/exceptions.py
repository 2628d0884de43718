"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception.

    ``back_to`` is the page the "not found" view offers as its single
    navigation action.
    """

    def __init__(self, message: str = "Resource not found", back_to: str | None = None):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)
        self.back_to = back_to


class UnauthorizedException(AppException):
    """Unauthenticated action exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Optimistic concurrency conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidTransitionException(AppException):
    """Booking status transition that the state machine does not allow."""

    def __init__(self, current: str, target: str):
        """Initialize with 409 status code."""
        super().__init__(f"Cannot move booking from {current} to {target}", status_code=409)
        self.current = current
        self.target = target


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class RemoteServiceException(AppException):
    """A remote collaborator (data store, file storage, identity) failed."""

    def __init__(self, message: str = "Remote service unavailable"):
        """Initialize with 502 status code."""
        super().__init__(message, status_code=502)


class RouteRedirect(AppException):
    """Guard decided the requested page must redirect elsewhere."""

    def __init__(self, location: str):
        """Initialize with 307 status code."""
        super().__init__(f"Redirect to {location}", status_code=307)
        self.location = location
