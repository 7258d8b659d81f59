"""
Progression Engine - Custom Error Types
Structured exceptions for synthesis errors with recovery hints.
"""
from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the progression engine."""
    # General errors
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Source graph errors
    SOURCE_MALFORMED = "SOURCE_MALFORMED"
    CLASS_NOT_FOUND = "CLASS_NOT_FOUND"

    # Reference data errors
    REFERENCE_UNAVAILABLE = "REFERENCE_UNAVAILABLE"


class ProgressionError(Exception):
    """
    Base exception for all progression synthesis errors.

    Provides structured error information with:
    - Error code for programmatic handling
    - Human-readable message
    - Additional context details
    - Recovery hints for the caller
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
        recovery_hint: Optional[str] = None,
        http_status: int = 500
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "recoverable": self.recoverable,
                "recovery_hint": self.recovery_hint
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# =============================================================================
# Source Graph Errors
# =============================================================================

class SourceError(ProgressionError):
    """Errors in the exported character/class graph."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.SOURCE_MALFORMED,
        message: str = "Source data error",
        **kwargs
    ):
        kwargs.setdefault("http_status", 400)
        super().__init__(code=code, message=message, **kwargs)


class MalformedSourceError(SourceError):
    """Raised when a class definition lacks the identity fields synthesis needs."""

    def __init__(self, reason: str = "Class definition is malformed", missing: Optional[list] = None):
        details = {}
        if missing:
            details["missing"] = list(missing)
        super().__init__(
            code=ErrorCode.SOURCE_MALFORMED,
            message=reason,
            details=details,
            recovery_hint="Re-export the character and check the class definition"
        )


class ClassNotFoundError(SourceError):
    """Raised when the requested class is not part of the source graph."""

    def __init__(self, class_id: Optional[int] = None):
        details = {}
        if class_id is not None:
            details["class_id"] = class_id
        super().__init__(
            code=ErrorCode.CLASS_NOT_FOUND,
            message="Class not found in source",
            details=details,
            http_status=404,
            recovery_hint="Use a class definition id present in the character's classes"
        )


# =============================================================================
# Reference Data Errors
# =============================================================================

class ReferenceUnavailableError(ProgressionError):
    """Raised when the reference document library cannot be read."""

    def __init__(self, path: Optional[str] = None):
        details = {}
        if path:
            details["path"] = path
        super().__init__(
            code=ErrorCode.REFERENCE_UNAVAILABLE,
            message="Reference library is unavailable",
            details=details,
            http_status=503,
            recovery_hint="Check SRD_DATA_PATH points at a readable directory"
        )


# =============================================================================
# Validation Error
# =============================================================================

class ValidationError(ProgressionError):
    """Input validation errors."""

    def __init__(self, field: str, message: str, value: Any = None):
        details = {"field": field}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details=details,
            http_status=400,
            recovery_hint=f"Check the value for '{field}'"
        )

