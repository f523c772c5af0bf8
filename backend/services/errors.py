"""
Domain exceptions shared by the presentation, item, player and upload services.

Routers translate them to HTTPException using ``status_code``.
"""


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500


class PresentationNotFoundError(ServiceError):
    """Presentation does not exist or is not visible to the caller."""

    status_code = 404


class ItemNotFoundError(ServiceError):
    """Item does not exist or is not visible to the caller."""

    status_code = 404


class PermissionDeniedError(ServiceError):
    """Caller can see the resource but does not own it."""

    status_code = 403


class InvalidReorderError(ServiceError):
    """Reorder request is not a permutation of the presentation's items."""

    status_code = 400


class UploadRejectedError(ServiceError):
    """Upload refused before anything reaches storage."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code
