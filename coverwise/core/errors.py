"""
COVERWISE • core/errors.py

Error taxonomy and the tagged results returned by external collaborators.

  • ServiceError (and subclasses) are raised inside request handling and
    rendered by the app-level exception handler as {error, message[, details]}.
  • Ok / Err are returned by the payment gate and the letter composer so the
    route decides how to surface a collaborator failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")


# ============================================================
# ❌ Exceptions
# ============================================================

class ServiceError(Exception):
    """Base error with a machine-readable category and a user-facing message."""

    status_code: int = 500
    error: str = "Internal server error"
    message: str = "Something went wrong"

    def __init__(
        self,
        error: Optional[str] = None,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.error = error or self.error
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.extra = extra or {}
        super().__init__(f"{self.error}: {self.message}")

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error, "message": self.message}
        body.update(self.extra)
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationFailed(ServiceError):
    status_code = 400
    error = "Invalid request"
    message = "The request could not be validated"


class NoFileUploaded(ValidationFailed):
    error = "No file uploaded"
    message = "Please upload your resume file"


class UnsupportedFileType(ValidationFailed):
    error = "Invalid file type"
    message = "Only PDF and DOCX files are allowed."


class FileTooLarge(ServiceError):
    status_code = 413
    error = "File too large"
    message = "The uploaded file exceeds the size limit"


class EmptyDocument(ValidationFailed):
    error = "Empty document"
    message = "Could not extract text from file"


class TextExtractionError(ServiceError):
    status_code = 500
    error = "Error processing resume"
    message = "Could not parse your resume file"


class RateLimited(ServiceError):
    status_code = 429
    error = "Too many requests"
    message = "Too many requests from this IP, please try again later"


# ============================================================
# 🏷️ Tagged results
# ============================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: str
    message: str
    status_code: int = 500
    detail: Optional[str] = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return False

    def to_error(self) -> ServiceError:
        return ServiceError(self.kind, self.message, status_code=self.status_code, details=self.detail)


Result = Union[Ok[T], Err]
