"""
Application exceptions and partial-failure records.

Hard errors (missing business profile, missing review) are raised as
AppException subclasses and propagate to the caller. A failing platform
fetch during a cross-platform call is never raised: it is recorded as a
SourceError on the result instead.
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            code="not_found",
            details={"resource": resource, "resource_id": resource_id},
        )


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="validation_error",
            details={"errors": errors or {}},
        )


@dataclass(frozen=True)
class SourceError:
    """A platform whose fetch failed during a cross-platform call."""

    platform: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, platform: str, exc: Exception) -> "SourceError":
        return cls(platform=platform, error_type=type(exc).__name__, message=str(exc))

    def to_dict(self) -> Dict[str, str]:
        return {
            "platform": self.platform,
            "error_type": self.error_type,
            "message": self.message,
        }
