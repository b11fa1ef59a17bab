from flask import Blueprint, g, jsonify, request

from ..auth import login_required, roles_required
from ..context import get_claim_service

claim_bp = Blueprint('claims', __name__, url_prefix='/api')

# ========================
# Claims API (claimant)
# ========================

@claim_bp.route('/claims', methods=['POST'])
@roles_required('student', 'teacher')
def create_claim_api():
    """
    File a claim. Body: itemType ('lost'|'found'), itemId, proofText.
    The assigned maintainer is notified best-effort.
    """
    data = request.get_json(silent=True) or {}
    claim_id = get_claim_service().create_claim(
        item_type=data.get('itemType'),
        item_id=data.get('itemId'),
        claimant_uid=g.uid,
        claimant_email=g.email,
        proof_text=data.get('proofText'),
        id_token=g.id_token,
    )
    return jsonify({'success': True, 'claimId': claim_id, 'status': 'pending'}), 201


@claim_bp.route('/claims/mine', methods=['GET'])
@login_required
def list_my_claims_api():
    claims = get_claim_service().list_claims_for_claimant(g.uid, status=request.args.get('status'))
    return jsonify({'success': True, 'claims': [c.to_api_dict() for c in claims]}), 200

# ========================
# Review API (maintainer / admin)
# ========================

@claim_bp.route('/review/claims', methods=['GET'])
@roles_required('maintainer', 'admin')
def list_review_claims_api():
    """Admins see every claim; maintainers see claims assigned to them. Newest first."""
    claims = get_claim_service().list_claims_for_reviewer(g.uid, g.role, status=request.args.get('status'))
    pending = sum(1 for c in claims if c.status.value == 'pending')
    return jsonify({
        'success': True,
        'claims': [c.to_api_dict() for c in claims],
        'pendingCount': pending,
    }), 200


@claim_bp.route('/review/claims/<claim_id>', methods=['GET'])
@roles_required('maintainer', 'admin')
def get_review_claim_api(claim_id):
    """Claim details together with the item's hidden secret proof."""
    review = get_claim_service().get_claim_review(claim_id, g.uid, g.role)
    return jsonify({'success': True, **review}), 200


@claim_bp.route('/review/claims/<claim_id>/decision', methods=['POST'])
@roles_required('maintainer', 'admin')
def decide_claim_api(claim_id):
    """Body: outcome ('approved'|'rejected'), rejectionReason (required when rejecting)."""
    data = request.get_json(silent=True) or {}
    outcome = data.get('outcome') or data.get('status')
    get_claim_service().decide(
        claim_id,
        acting_uid=g.uid,
        acting_role=g.role,
        outcome=outcome,
        rejection_reason=data.get('rejectionReason'),
        acting_name=g.profile.name or None,
        id_token=g.id_token,
    )
    return jsonify({'success': True, 'claimId': claim_id, 'newStatus': str(outcome).strip().lower()}), 200


@claim_bp.route('/review/claims/<claim_id>/pickup', methods=['POST'])
@roles_required('maintainer', 'admin')
def confirm_pickup_api(claim_id):
    item_status = get_claim_service().confirm_pickup(claim_id, g.uid, g.role)
    return jsonify({'success': True, 'claimId': claim_id, 'itemStatus': item_status.value}), 200
