"""Consistent JSON error responses for the web API.

Every error body has the shape
``{success: false, error, error_code, action_required?}``.
"""

from typing import Any, Dict, Optional, Tuple

from flask import jsonify

from ..errors import (
    CardStoreError,
    EncodingFailure,
    FlashcardError,
    InputValidationError,
    ResolutionFailure
)


class ErrorCode:
    """Standard error codes for API responses."""

    # Authentication
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    # Request validation
    INVALID_JSON = "INVALID_JSON"
    MISSING_DATA = "MISSING_DATA"
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_LEVEL = "INVALID_LEVEL"
    INVALID_KEY = "INVALID_KEY"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"

    # Lookups
    CARD_NOT_FOUND = "CARD_NOT_FOUND"
    AUDIO_NOT_FOUND = "AUDIO_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"

    # Operations
    STORE_ERROR = "STORE_ERROR"
    AUDIO_GENERATION_FAILED = "AUDIO_GENERATION_FAILED"
    EXPORT_FAILED = "EXPORT_FAILED"
    BACKUP_FAILED = "BACKUP_FAILED"

    # General
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ActionRequired:
    """Standard action_required values for error responses."""

    LOGIN = "login"
    FIX_INPUT = "fix_input"
    RETRY = "retry"
    CONTACT_SUPPORT = "contact_support"


def format_error_response(
    error_message: str,
    error_code: str,
    action_required: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Format a consistent error response body.

    Args:
        error_message: Human-readable error message
        error_code: Machine-readable error code (use ErrorCode constants)
        action_required: Specific user action needed (use ActionRequired constants)
        additional_data: Additional data to include in response

    Returns:
        Dictionary formatted for JSON response

    Example:
        >>> format_error_response("Login required", ErrorCode.AUTH_REQUIRED, ActionRequired.LOGIN)
        {'success': False, 'error': 'Login required', 'error_code': 'AUTH_REQUIRED', 'action_required': 'login'}
    """
    response = {
        'success': False,
        'error': error_message,
        'error_code': error_code
    }

    if action_required:
        response['action_required'] = action_required

    if additional_data:
        response.update(additional_data)

    return response


def error_response(
    error_message: str,
    error_code: str,
    status: int,
    action_required: Optional[str] = None
) -> Tuple[Any, int]:
    """Shortcut returning ``(jsonify(body), status)``."""
    return jsonify(format_error_response(error_message, error_code, action_required)), status


def authentication_required_response() -> Tuple[Any, int]:
    return error_response(
        "Login required to manage content.",
        ErrorCode.AUTH_REQUIRED,
        401,
        ActionRequired.LOGIN
    )


def invalid_credentials_response() -> Tuple[Any, int]:
    return error_response(
        "Incorrect username or password.",
        ErrorCode.INVALID_CREDENTIALS,
        401,
        ActionRequired.LOGIN
    )


def file_too_large_response(max_size_mb: int) -> Tuple[Any, int]:
    return error_response(
        f"Request too large. Maximum upload size is {max_size_mb}MB.",
        ErrorCode.FILE_TOO_LARGE,
        413,
        ActionRequired.FIX_INPUT
    )


def flashcard_error_response(error: FlashcardError) -> Tuple[Any, int]:
    """
    Map a FlashcardError to an HTTP error response.

    Input problems become 400, everything else 500.
    """
    if isinstance(error, InputValidationError):
        code, status, action = ErrorCode.MISSING_FIELDS, 400, ActionRequired.FIX_INPUT
        if 'level' in error.message.lower():
            code = ErrorCode.INVALID_LEVEL
    elif isinstance(error, CardStoreError):
        code, status, action = ErrorCode.STORE_ERROR, 500, ActionRequired.RETRY
    elif isinstance(error, ResolutionFailure):
        code, status, action = ErrorCode.AUDIO_GENERATION_FAILED, 502, ActionRequired.RETRY
    elif isinstance(error, EncodingFailure):
        code, status, action = ErrorCode.EXPORT_FAILED, 500, ActionRequired.RETRY
    else:
        code, status, action = ErrorCode.UNEXPECTED_ERROR, 500, ActionRequired.CONTACT_SUPPORT

    return error_response(error.message, code, status, action)


def unexpected_error_response(
    error_details: Optional[str] = None,
    include_details: bool = False
) -> Tuple[Any, int]:
    """
    Create a standardized unexpected error response.

    Args:
        error_details: Details about the error
        include_details: Whether to include error details in response (dev mode)
    """
    if include_details and error_details:
        message = f"An unexpected error occurred: {error_details}"
    else:
        message = (
            "An unexpected error occurred. "
            "Please try again or contact support if the problem persists."
        )

    return error_response(
        message,
        ErrorCode.UNEXPECTED_ERROR,
        500,
        ActionRequired.CONTACT_SUPPORT
    )
