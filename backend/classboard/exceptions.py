"""
Custom Exception Classes for Classboard

Every error the service layer can raise is an AppException subclass carrying
an ErrorCode, an HTTP status code and optional details, so the API layer can
render a consistent error body and callers can branch on the kind.
"""

from typing import Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for consistent error responses"""

    # Authentication & Authorization (AUTH_xxx)
    INVALID_TOKEN = "AUTH_001"
    TOKEN_EXPIRED = "AUTH_002"
    USER_NOT_FOUND = "AUTH_004"
    EMAIL_TAKEN = "AUTH_008"
    PERMISSION_DENIED = "AUTH_009"

    # Diagram (DIAG_xxx)
    DIAGRAM_NOT_FOUND = "DIAG_001"
    DIAGRAM_ACCESS_DENIED = "DIAG_002"
    NOT_DIAGRAM_OWNER = "DIAG_003"
    DIAGRAM_REVISION_CONFLICT = "DIAG_004"
    INVALID_DIAGRAM_CONTENT = "DIAG_005"

    # Diagram document (DOC_xxx)
    CLASS_NOT_FOUND = "DOC_001"
    CLASS_ALREADY_EXISTS = "DOC_002"
    ATTRIBUTE_NOT_FOUND = "DOC_003"
    RELATION_NOT_FOUND = "DOC_004"
    RELATION_ALREADY_EXISTS = "DOC_005"

    # Validation (VAL_xxx)
    VALIDATION_ERROR = "VAL_001"

    # Database (DB_xxx)
    NOT_FOUND = "DB_002"
    ALREADY_EXISTS = "DB_003"

    # General (GEN_xxx)
    INTERNAL_SERVER_ERROR = "GEN_001"
    RATE_LIMIT_EXCEEDED = "GEN_003"


class AppException(Exception):
    """
    Base exception class for all application errors.

    Attributes:
        message: Human readable error message
        code: Error code (ErrorCode enum)
        status_code: HTTP status code
        details: Extra error details (optional)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the exception for an API response"""
        result = {
            "error": self.code.value,
            "message": self.message,
            "status_code": self.status_code,
        }
        if self.details:
            result["details"] = self.details
        return result


# ==================== Error kinds ====================

class NotFoundException(AppException):
    """Resource not found"""

    def __init__(
        self,
        message: str = "Resource not found",
        code: ErrorCode = ErrorCode.NOT_FOUND,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, 404, details)


class ForbiddenException(AppException):
    """Caller is not allowed to perform the operation"""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        code: ErrorCode = ErrorCode.PERMISSION_DENIED,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, 403, details)


class ConflictException(AppException):
    """Resource already exists or was modified concurrently"""

    def __init__(
        self,
        message: str = "Resource already exists",
        code: ErrorCode = ErrorCode.ALREADY_EXISTS,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, 409, details)


# ==================== Authentication Exceptions ====================

class AuthenticationException(AppException):
    """Generic authentication error"""

    def __init__(
        self,
        message: str = "Could not validate credentials",
        code: ErrorCode = ErrorCode.INVALID_TOKEN,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, 401, details)


class TokenExpiredException(AuthenticationException):
    """Token is invalid or expired"""

    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message, ErrorCode.TOKEN_EXPIRED)


class UserNotFoundException(NotFoundException):
    """User not found"""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, ErrorCode.USER_NOT_FOUND)


class EmailTakenException(ConflictException):
    """Email already registered"""

    def __init__(self):
        super().__init__(
            "This email address is already registered",
            ErrorCode.EMAIL_TAKEN,
            {"field": "email"},
        )


# ==================== Diagram Exceptions ====================

class DiagramNotFoundException(NotFoundException):
    """Diagram not found (or soft-deleted)"""

    def __init__(self, message: str = "Diagram not found"):
        super().__init__(message, ErrorCode.DIAGRAM_NOT_FOUND)


class DiagramAccessDeniedException(ForbiddenException):
    """Caller is neither the owner nor a collaborator"""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, ErrorCode.DIAGRAM_ACCESS_DENIED)


class NotDiagramOwnerException(ForbiddenException):
    """Operation reserved to the diagram owner"""

    def __init__(self, message: str = "Only the owner can share the diagram"):
        super().__init__(message, ErrorCode.NOT_DIAGRAM_OWNER)


class DiagramRevisionConflictException(ConflictException):
    """Diagram was modified by someone else since it was read"""

    def __init__(self, expected: int | None = None, actual: int | None = None):
        details = {}
        if expected is not None:
            details["expected_revision"] = expected
        if actual is not None:
            details["current_revision"] = actual
        super().__init__(
            "Diagram was modified concurrently, reload and try again",
            ErrorCode.DIAGRAM_REVISION_CONFLICT,
            details,
        )


class InvalidDiagramContentException(AppException):
    """Document does not have the elements/relations shape"""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid diagram content: {reason}",
            ErrorCode.INVALID_DIAGRAM_CONTENT,
            400,
            {"reason": reason},
        )


# ==================== Document Exceptions ====================

class ClassNotFoundException(NotFoundException):
    """Class element not found in diagram"""

    def __init__(self, class_id: str):
        super().__init__(
            "Class not found in diagram",
            ErrorCode.CLASS_NOT_FOUND,
            {"class_id": class_id},
        )


class ClassAlreadyExistsException(ConflictException):
    """Class id already used in diagram"""

    def __init__(self, class_id: str):
        super().__init__(
            "Class already exists",
            ErrorCode.CLASS_ALREADY_EXISTS,
            {"class_id": class_id},
        )


class AttributeNotFoundException(NotFoundException):
    """Attribute index out of range (or class missing)"""

    def __init__(self, class_id: str, index: int):
        super().__init__(
            "Attribute not found",
            ErrorCode.ATTRIBUTE_NOT_FOUND,
            {"class_id": class_id, "index": index},
        )


class RelationNotFoundException(NotFoundException):
    """Relation not found in diagram"""

    def __init__(self, relation_id: str):
        super().__init__(
            "Relation not found",
            ErrorCode.RELATION_NOT_FOUND,
            {"relation_id": relation_id},
        )


class RelationAlreadyExistsException(ConflictException):
    """Relation id already used in diagram"""

    def __init__(self, relation_id: str):
        super().__init__(
            "Relation already exists",
            ErrorCode.RELATION_ALREADY_EXISTS,
            {"relation_id": relation_id},
        )
