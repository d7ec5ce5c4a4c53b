from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )


class ConflictError(HTTPException):
    """Raised when a write collides with existing state (e.g. a taken username)."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=message,
        )


class UnauthorizedError(HTTPException):
    """Raised when credentials are missing or invalid."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
        )


class ForbiddenError(HTTPException):
    """Raised when user lacks permission to access a resource."""

    def __init__(self, message: str = "Not authorized to access this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message,
        )


class ValidationError(HTTPException):
    """Raised when request validation fails."""

    def __init__(self, message: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message,
        )


class RateLimitExceededError(HTTPException):
    """Raised when a caller exhausts its request window."""

    def __init__(self, message: str, retry_after: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=message,
            headers={"Retry-After": str(retry_after)},
        )


def get_error_message(error: BaseException) -> str:
    """Convert an arbitrary exception into a message safe to show a user."""
    if isinstance(error, HTTPException):
        return str(error.detail)

    if isinstance(error, (ConnectionError, TimeoutError)):
        return "Network error. Please check your connection and try again."

    message = str(error)
    lowered = message.lower()
    if "duplicate" in lowered or "unique constraint" in lowered:
        return "This item already exists."
    if "not found" in lowered:
        return "Item not found."
    if "unauthorized" in lowered or "auth" in lowered:
        return "You are not authorized to perform this action."
    if "network" in lowered:
        return "Network error. Please try again."

    return message or "An unexpected error occurred. Please try again."
