from typing import Any, Dict, List, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def detail(self) -> Any:
        return self.message


class ValidationError(ServiceError):
    """Malformed input that passed schema validation but breaks a business rule."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.field = field

    @property
    def detail(self) -> Any:
        if self.field is None:
            return self.message
        return {"message": self.message, "field": self.field}


class NotFoundError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class CapacityExceededError(ServiceError):
    """One or more classes have no free slot left for the requested week and type.

    ``full_classes`` holds one ``{"class_id", "used", "max"}`` entry per full class.
    """

    def __init__(self, assignment_type: str, full_classes: List[Dict[str, Any]]) -> None:
        ids = ", ".join(c["class_id"] for c in full_classes)
        super().__init__(
            f"Weekly {assignment_type} quota is full for class(es): {ids}",
            status.HTTP_409_CONFLICT,
        )
        self.assignment_type = assignment_type
        self.full_classes = full_classes

    @property
    def detail(self) -> Any:
        return {
            "message": self.message,
            "type": self.assignment_type,
            "classes": self.full_classes,
        }


class PersistenceUnavailableError(ServiceError):
    """The backing store could not be reached. The write did not happen; retry is safe."""

    def __init__(self, message: str = "Database is unavailable, please retry") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.retryable = True
