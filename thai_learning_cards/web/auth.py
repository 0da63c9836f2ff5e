"""Login gate for content management endpoints."""

import hmac
import logging
from datetime import datetime
from functools import wraps

from flask import Blueprint, current_app, jsonify, request, session

from .error_responses import (
    ErrorCode,
    ActionRequired,
    authentication_required_response,
    error_response,
    invalid_credentials_response
)


logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/api')


def is_logged_in() -> bool:
    return bool(session.get('logged_in'))


def login_required(view):
    """Reject the request with 401 unless an admin session is active."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not is_logged_in():
            logger.info(f"Rejected unauthenticated request to {request.path}")
            return authentication_required_response()
        return view(*args, **kwargs)
    return wrapped


def check_credentials(username: str, password: str) -> bool:
    expected_user = current_app.config['ADMIN_USERNAME']
    expected_password = current_app.config['ADMIN_PASSWORD']
    user_ok = hmac.compare_digest(str(username).encode('utf-8'), expected_user.encode('utf-8'))
    password_ok = hmac.compare_digest(str(password).encode('utf-8'), expected_password.encode('utf-8'))
    return user_ok and password_ok


@bp.route('/login', methods=['POST'])
def login():
    """
    Start an admin session.

    Expects JSON ``{username, password}``. The session lasts
    ``PERMANENT_SESSION_LIFETIME``.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response(
            "Request body must be JSON", ErrorCode.INVALID_JSON, 400, ActionRequired.FIX_INPUT
        )

    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return error_response(
            "Username and password are required",
            ErrorCode.MISSING_FIELDS,
            400,
            ActionRequired.FIX_INPUT
        )

    if not check_credentials(username, password):
        logger.warning(f"Failed login attempt for user '{username}'")
        return invalid_credentials_response()

    session.clear()
    session.permanent = True
    session['logged_in'] = True
    session['username'] = username
    session['login_time'] = datetime.now().isoformat()
    logger.info(f"User '{username}' logged in")

    return jsonify({'success': True, 'username': username})


@bp.route('/logout', methods=['POST'])
def logout():
    username = session.get('username')
    session.clear()
    if username:
        logger.info(f"User '{username}' logged out")
    return jsonify({'success': True})


@bp.route('/session', methods=['GET'])
def session_status():
    """Report whether an admin session is active."""
    if not is_logged_in():
        return jsonify({'loggedIn': False})
    return jsonify({
        'loggedIn': True,
        'username': session.get('username'),
        'loginTime': session.get('login_time')
    })
