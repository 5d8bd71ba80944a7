"""
Shelter Pets Backend: Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the failure modes of the pet API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    ShelterError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── AlreadyAdoptedError      → 400 Bad Request (adoption is one-way)
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ShelterError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ShelterError):
    """
    Raised when client input fails validation.

    When:    Missing or malformed pet fields, unsupported image type or size,
             explicit null for a required field in an update.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Field 'name' cannot be null",
            "details": {"field": "name"}
        }
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


class NotFoundError(ShelterError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/PATCH/DELETE /pets/{id} for an id that does not resolve,
             or a stored image that is gone from disk.
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


class AlreadyAdoptedError(ShelterError):
    """
    Raised when adopting a pet that has already been adopted.

    The record is left untouched. Reported as 400 so clients treat a repeated
    adopt request as an error rather than a silent success.
    """

    def __init__(
        self,
        pet_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if pet_id:
            ctx["pet_id"] = pet_id
        super().__init__(message="Pet is already adopted", context=ctx)
        self.pet_id = pet_id


class FileStorageError(ShelterError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, storage directory not writable.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ShelterError):
    """
    Raised when the record store fails unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context
    (operation, pet id, driver error type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
