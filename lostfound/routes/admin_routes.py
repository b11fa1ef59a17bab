from flask import Blueprint, g, jsonify, request

from ..auth import roles_required
from ..context import get_store
from ..services.analytics_service import get_analytics
from ..services.user_service import get_user_profile, list_users, set_user_disabled, update_maintainer_profile

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/users', methods=['GET'])
@roles_required('admin')
def list_users_api():
    users = list_users(get_store(), g.uid, g.role)
    return jsonify({'success': True, 'users': [u.to_api_dict() for u in users]}), 200


@admin_bp.route('/analytics', methods=['GET'])
@roles_required('admin')
def analytics_api():
    return jsonify({'success': True, 'stats': get_analytics(get_store(), g.uid, g.role)}), 200


@admin_bp.route('/maintainers/<user_id>', methods=['GET'])
@roles_required('admin')
def get_maintainer_api(user_id):
    profile = get_user_profile(get_store(), user_id)
    return jsonify({'success': True, 'user': profile.to_api_dict()}), 200


@admin_bp.route('/maintainers/<user_id>', methods=['PUT'])
@roles_required('admin')
def update_maintainer_api(user_id):
    """Promote a user to maintainer and/or set their locations, categories, collection point and hours."""
    data = request.get_json(silent=True) or {}
    profile = update_maintainer_profile(
        get_store(), g.uid, g.role, user_id,
        locations=data.get('locations'),
        categories=data.get('categories'),
        collection_point=data.get('collectionPoint'),
        office_hours=data.get('officeHours'),
        name=data.get('name'),
    )
    return jsonify({'success': True, 'user': profile.to_api_dict()}), 200


@admin_bp.route('/users/<user_id>/disable', methods=['POST'])
@roles_required('admin')
def set_user_disabled_api(user_id):
    """Body: disabled (bool, default true), reason (optional)."""
    data = request.get_json(silent=True) or {}
    profile = set_user_disabled(
        get_store(), g.uid, g.role, user_id,
        disabled=data.get('disabled', True),
        reason=data.get('reason', ''),
    )
    return jsonify({'success': True, 'user': profile.to_api_dict()}), 200
