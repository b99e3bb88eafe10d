from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def detail(self) -> Any:
        """Payload routers hand to HTTPException."""
        return self.message


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class FieldValidationError(ServiceError):
    """One or more field-scoped validation failures. Nothing has been written."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors: List[FieldError] = list(errors)
        message = "; ".join(f"{e.field}: {e.message}" for e in self.errors) or "Validation failed"
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY)

    @classmethod
    def single(cls, field: str, message: str) -> "FieldValidationError":
        return cls([FieldError(field, message)])

    @property
    def detail(self) -> Any:
        return [e.as_dict() for e in self.errors]


class InvalidDateRange(FieldValidationError):
    def __init__(self, message: str = "The end date must be on or after the start date.") -> None:
        super().__init__([FieldError("end_date", message)])


class PreconditionFailed(ServiceError):
    """The operation cannot run against the current state of the record."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class NotFoundError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class PermissionDenied(ServiceError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)
