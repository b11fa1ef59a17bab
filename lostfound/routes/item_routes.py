from flask import Blueprint, g, jsonify, request

from ..auth import login_required, roles_required
from ..context import get_item_service, get_store
from ..services.assignment_service import resolve_assignee

item_bp = Blueprint('items', __name__, url_prefix='/api')


def _report_response(item_type, item_id, assignee):
    return jsonify({
        'success': True,
        'itemType': item_type,
        'itemId': item_id,
        'assignment': assignee.to_dict(),
        'message': (
            f'Assigned to: {assignee.assigned_maintainer_name}. '
            f'Collect at: {assignee.collection_point} ({assignee.office_hours})'
        ),
    }), 201


@item_bp.route('/lost-items', methods=['POST'])
@login_required
def report_lost_item_api():
    """Report a lost item. Body: title, category, lastSeenLocation, secretProof, optional lostDate/color/description/imageData."""
    data = request.get_json(silent=True) or {}
    item_id, assignee = get_item_service().report_lost_item(g.uid, g.email, data)
    return _report_response('lost', item_id, assignee)


@item_bp.route('/found-items', methods=['POST'])
@login_required
def report_found_item_api():
    """Report a found item. Body: title, category, foundLocation, optional secretProof/foundDate/color/description/imageData."""
    data = request.get_json(silent=True) or {}
    item_id, assignee = get_item_service().report_found_item(g.uid, g.email, data)
    return _report_response('found', item_id, assignee)


@item_bp.route('/items', methods=['GET'])
@login_required
def list_items_api():
    """Browse reported items, newest first. Query: type ('lost'|'found'), status."""
    items = get_item_service().list_items(request.args.get('type'), request.args.get('status'))
    return jsonify({'success': True, 'items': [i.to_api_dict() for i in items]}), 200


@item_bp.route('/items/<item_type>/<item_id>', methods=['GET'])
@login_required
def get_item_api(item_type, item_id):
    item = get_item_service().get_item(item_type, item_id)
    return jsonify({'success': True, 'item': item.to_api_dict()}), 200


@item_bp.route('/items/<item_type>/<item_id>/reassign', methods=['POST'])
@roles_required('admin')
def reassign_item_api(item_type, item_id):
    assignee = get_item_service().reassign_item(item_type, item_id, g.uid, g.role)
    return jsonify({'success': True, 'assignment': assignee.to_dict()}), 200


@item_bp.route('/assignments/preview', methods=['POST'])
@login_required
def preview_assignment_api():
    """Show who would receive a report for a location/category, without saving anything."""
    data = request.get_json(silent=True) or {}
    assignee = resolve_assignee(get_store(), data.get('location', ''), data.get('category', ''))
    return jsonify({'success': True, 'assignment': assignee.to_dict()}), 200
