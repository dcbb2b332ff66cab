"""
ProjectRepo Backend - Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each error class the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) translate them
       into structured JSON responses with the matching HTTP status code.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    ProjectRepoError (base)               → 500
    ├── ValidationError                   → 400 Bad Request
    ├── AuthenticationError               → 401 Unauthorized
    ├── PermissionDeniedError             → 403 Forbidden
    │   └── InvalidTransitionError        → 403 Forbidden
    ├── NotFoundError                     → 404 Not Found
    ├── ConflictError                     → 409 Conflict
    ├── FileStorageError                  → 500 Internal Server Error
    ├── DatabaseError                     → 500 Internal Server Error
    └── RateLimitExceededError            → 429 Too Many Requests

The `context` dict is logged server-side and never returned to the client,
except for ValidationError where it names the offending field.
"""

from typing import Any, Dict, Optional


class ProjectRepoError(Exception):
    """
    Base exception for all ProjectRepo application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ProjectRepoError):
    """
    Raised when client input fails validation.

    When:    Missing form fields, title/abstract too short, non-PDF upload,
             blank rejection feedback, invalid role name.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(ProjectRepoError):
    """
    Raised when the caller is not authenticated or lacks the required role.

    When:    Missing/expired/forged bearer token, bad login credentials,
             an endpoint reserved for another role.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(ProjectRepoError):
    """
    Raised when an authenticated caller may not act on a specific resource.

    When:    A student touching someone else's project, a supervisor reviewing a
             project assigned to a colleague, a classlist check failing.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not authorized to perform this action.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTransitionError(PermissionDeniedError):
    """
    Raised when a project is not in a state that permits the requested action.

    Also raised when a conditional status update matches no row, which means
    another request moved the project first.
    """

    def __init__(
        self,
        current_status: str,
        action: str,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or f"This project cannot be {_past_tense(action)} while it is {current_status}.",
            context={"current_status": current_status, "action": action},
        )
        self.current_status = current_status
        self.action = action


def _past_tense(action: str) -> str:
    return {
        "SUBMIT": "submitted",
        "APPROVE": "approved",
        "REJECT": "rejected",
        "RESUBMIT": "resubmitted",
        "PUBLISH_FINAL": "published",
    }.get(action, action.lower())


class NotFoundError(ProjectRepoError):
    """
    Raised when a requested resource does not exist (or is hidden from the caller).

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ProjectRepoError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Re-registering an existing matricule, duplicate classlist email,
             deleting a user who still owns projects.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ProjectRepoError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ProjectRepoError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; constraint names and
    SQL stay in the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ProjectRepoError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
