"""
Request authentication: every API call carries `Authorization: Bearer <Firebase ID token>`.
The verified uid is joined with the users/{uid} profile to get the caller's role.
"""
import logging
import re
from functools import wraps

from flask import current_app, g, jsonify, request
from firebase_admin import auth as firebase_auth

from .context import get_store
from .errors import LostFoundError
from .models import Role

_logger = logging.getLogger(__name__)
_BEARER = re.compile(r'^Bearer (.+)$')


def get_bearer_token():
    """Extract the ID token from the Authorization header, or None"""
    match = _BEARER.match(request.headers.get('Authorization', '') or '')
    return match.group(1).strip() if match else None


def verify_id_token(token):
    """Verify a Firebase ID token. Returns the decoded claims ({uid, email, ...})."""
    verifier = current_app.config.get('TOKEN_VERIFIER') or firebase_auth.verify_id_token
    return verifier(token)


def authenticate_request():
    """
    Authenticate the current request and populate flask.g with uid, email, role, profile and id_token.

    Returns:
        tuple: (ok, error_response, status_code)
    """
    token = get_bearer_token()
    if not token:
        return False, {'success': False, 'error': 'Missing Bearer token', 'code': 'UNAUTHENTICATED'}, 401
    try:
        decoded = verify_id_token(token)
    except Exception as e:
        _logger.warning('ID token verification failed: %s', str(e))
        return False, {'success': False, 'error': 'Auth failed', 'code': 'UNAUTHENTICATED'}, 401

    uid = decoded.get('uid')
    if not uid:
        return False, {'success': False, 'error': 'Auth failed', 'code': 'UNAUTHENTICATED'}, 401

    try:
        profile = get_store().get_user(uid)
    except LostFoundError as e:
        return False, e.to_dict(), e.status_code
    if profile is None:
        return False, {'success': False, 'error': 'User profile not found', 'code': 'UNKNOWN_USER'}, 403
    if profile.disabled:
        return False, {
            'success': False,
            'error': f"Account is disabled (reason: {profile.disabled_reason or 'Not specified'})",
            'code': 'ACCOUNT_DISABLED',
        }, 403

    g.uid = uid
    g.email = decoded.get('email') or profile.email
    g.role = profile.role
    g.profile = profile
    g.id_token = token
    return True, None, 200


def login_required(f):
    """Decorator to require a valid identity token for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ok, error, status = authenticate_request()
        if not ok:
            return jsonify(error), status
        return f(*args, **kwargs)
    return decorated_function


def roles_required(*roles):
    """Decorator to require one of the given roles for a route"""
    allowed = {Role.parse(r) for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            ok, error, status = authenticate_request()
            if not ok:
                return jsonify(error), status
            if g.role not in allowed:
                return jsonify({
                    'success': False,
                    'error': f"Requires role: {', '.join(sorted(r.value for r in allowed if r))}",
                    'code': 'FORBIDDEN_ROLE',
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator
