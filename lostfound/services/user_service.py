"""
User service for maintainer profiles and account status.
"""
import logging
from typing import List

from ..errors import PreconditionError, ValidationError
from ..models import Role, UserProfile
from .assignment_service import normalize_all
from .authorization import ensure_enabled

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)


def require_admin(store, acting_uid, acting_role):
    if Role.parse(acting_role) is not Role.ADMIN:
        raise PreconditionError('Admin access required', 'FORBIDDEN_ROLE', 403)
    ensure_enabled(store.get_user(acting_uid))


def list_users(store, acting_uid, acting_role) -> List[UserProfile]:
    """Every user profile, sorted by role and then name."""
    require_admin(store, acting_uid, acting_role)
    return sorted(store.list_users(), key=lambda p: (p.role.value if p.role else '', (p.name or '').lower()))


def get_user_profile(store, user_id) -> UserProfile:
    """
    Get user profile information.

    Args:
        store: Directory store
        user_id: ID of the user

    Returns:
        UserProfile, or raises ValidationError (404) when missing
    """
    profile = store.get_user(user_id)
    if profile is None:
        raise ValidationError('User not found', 'USER_NOT_FOUND', 404)
    return profile


def update_maintainer_profile(store, acting_uid, acting_role, user_id, locations=None, categories=None,
                              collection_point=None, office_hours=None, name=None) -> UserProfile:
    """
    Make a user a maintainer and set what they are responsible for.
    Locations and categories are stored normalized so the assignment
    resolver can match them with an exact array-contains lookup.
    """
    require_admin(store, acting_uid, acting_role)
    profile = get_user_profile(store, user_id)
    if profile.role is Role.ADMIN:
        raise PreconditionError('Admins cannot be turned into maintainers', 'ROLE_CONFLICT', 409)

    updates = {'role': Role.MAINTAINER.value}
    if locations is not None:
        updates['locations'] = normalize_all(locations)
    if categories is not None:
        updates['categories'] = normalize_all(categories)
    if collection_point is not None:
        updates['collectionPoint'] = str(collection_point).strip()
    if office_hours is not None:
        updates['officeHours'] = str(office_hours).strip()
    if name is not None:
        updates['name'] = str(name).strip()

    store.update_user(user_id, updates)
    _logger.info('Maintainer profile for %s updated by %s: %s', user_id, acting_uid, sorted(updates))
    return get_user_profile(store, user_id)


def set_user_disabled(store, acting_uid, acting_role, user_id, disabled, reason='') -> UserProfile:
    """Disable or re-enable an account. Re-enabling clears the reason."""
    require_admin(store, acting_uid, acting_role)
    if user_id == acting_uid and disabled:
        raise PreconditionError('You cannot disable your own account', 'SELF_DISABLE', 409)
    get_user_profile(store, user_id)

    disabled = bool(disabled)
    store.update_user(user_id, {
        'disabled': disabled,
        'disabledReason': (reason or '').strip() if disabled else '',
    })
    _logger.info('User %s %s by %s', user_id, 'disabled' if disabled else 'enabled', acting_uid)
    return get_user_profile(store, user_id)
