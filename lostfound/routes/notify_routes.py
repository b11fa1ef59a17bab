"""Notification relay endpoints. Message content is always derived server-side from the stored claim."""
from flask import Blueprint, g, jsonify, request

from ..auth import login_required
from ..context import get_relay

notify_bp = Blueprint('notify', __name__, url_prefix='/notify')


@notify_bp.route('/claim-created', methods=['POST'])
@login_required
def claim_created_api():
    """Claimant calls this after creating a claim: { claimId }"""
    data = request.get_json(silent=True) or {}
    out = get_relay().claim_created(g.uid, data.get('claimId'))
    return jsonify(out), 200


@notify_bp.route('/claim-status', methods=['POST'])
@login_required
def claim_status_api():
    """Assigned maintainer or admin calls this after approving/rejecting: { claimId }"""
    data = request.get_json(silent=True) or {}
    out = get_relay().claim_status(g.uid, data.get('claimId'))
    return jsonify(out), 200


@notify_bp.route('/register-token', methods=['POST'])
@login_required
def register_token_api():
    """Store a device push token for the caller: { token }"""
    data = request.get_json(silent=True) or {}
    out = get_relay().register_device_token(g.uid, data.get('token'))
    return jsonify(out), 200
