"""Web API for card management, audio and package downloads."""

from .app import create_app
from .auth import login_required
from .error_responses import ErrorCode, ActionRequired, format_error_response

__all__ = [
    'create_app',
    'login_required',
    'ErrorCode',
    'ActionRequired',
    'format_error_response'
]
