"""
Notification relay (server side of /notify/*).

The relay never trusts a payload pushed by the caller: it re-reads the claim,
re-checks that the caller may announce it, derives title/body from the stored
claim and pushes to the target user's registered device tokens.
"""
import logging
from typing import Dict, List

from firebase_admin import messaging

from ..errors import PreconditionError, ValidationError
from ..models import Claim, ClaimStatus, UserProfile
from .authorization import authorize_claim_owner, authorize_decision, ensure_enabled
from .directory_store import DirectoryStore

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)


class FcmSender:
    """Push sender backed by Firebase Cloud Messaging."""

    def send(self, tokens: List[str], title: str, body: str, data: Dict[str, str]) -> Dict:
        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data={k: str(v) for k, v in (data or {}).items()},
        )
        res = messaging.send_each_for_multicast(message)
        return {'ok': True, 'successCount': res.success_count, 'failureCount': res.failure_count}


def build_claim_created_message(claim: Claim):
    title = 'New Claim Submitted'
    body = f"Item: {claim.item_title or 'Item'}"
    if claim.category:
        body += f" - {claim.category}"
    return title, body


def build_claim_status_message(claim: Claim):
    item_title = claim.item_title or 'Item'
    if claim.status is ClaimStatus.APPROVED:
        return 'Claim Approved', (
            f'Approved for "{item_title}"\n'
            f'Collect: {claim.assignment.collection_point}\n'
            f'Time: {claim.assignment.office_hours}'
        )
    if claim.status is ClaimStatus.REJECTED:
        return 'Claim Rejected', (
            f'Rejected for "{item_title}"\n'
            f'Reason: {claim.rejected_reason or "Not specified"}'
        )
    return 'Claim Update', f'Item: {item_title}'


class NotificationRelay:
    def __init__(self, store: DirectoryStore, sender=None):
        self.store = store
        self.sender = sender or FcmSender()

    def _load_caller(self, caller_uid: str) -> UserProfile:
        profile = self.store.get_user(caller_uid)
        if profile is None:
            raise PreconditionError('Caller has no user profile', 'UNKNOWN_CALLER', 403)
        ensure_enabled(profile)
        return profile

    def _load_claim(self, claim_id: str) -> Claim:
        if not claim_id:
            raise ValidationError('Missing claimId', 'MISSING_CLAIM_ID')
        claim = self.store.get_claim(claim_id)
        if claim is None:
            raise ValidationError('Claim not found', 'CLAIM_NOT_FOUND', 404)
        return claim

    def send_to_user(self, uid: str, title: str, body: str, data: Dict[str, str]) -> Dict:
        profile = self.store.get_user(uid)
        tokens = profile.fcm_tokens if profile else []
        if not tokens:
            return {'ok': False, 'reason': 'No tokens'}
        return self.sender.send(tokens, title, body, data)

    def claim_created(self, caller_uid: str, claim_id: str) -> Dict:
        """Tell the assigned maintainer that a claim was filed. Caller must be the claimant."""
        caller = self._load_caller(caller_uid)
        claim = self._load_claim(claim_id)
        authorize_claim_owner(caller_uid, caller.role, claim)

        maintainer_uid = claim.assignment.assigned_maintainer_uid
        title, body = build_claim_created_message(claim)
        out = self.send_to_user(maintainer_uid, title, body, {'type': 'claim_created', 'claimId': claim.id})
        _logger.info('claim-created for %s -> maintainer %s: %s', claim.id, maintainer_uid, out)
        return out

    def claim_status(self, caller_uid: str, claim_id: str) -> Dict:
        """Tell the claimant about a decision. Caller must be the assignee or an admin."""
        caller = self._load_caller(caller_uid)
        claim = self._load_claim(claim_id)
        authorize_decision(caller_uid, caller.role, claim)

        title, body = build_claim_status_message(claim)
        out = self.send_to_user(claim.claimant_uid, title, body, {
            'type': 'claim_status',
            'claimId': claim.id,
            'status': claim.status.value,
        })
        _logger.info('claim-status for %s -> claimant %s: %s', claim.id, claim.claimant_uid, out)
        return out

    def register_device_token(self, caller_uid: str, token: str) -> Dict:
        token = (token or '').strip()
        if not token:
            raise ValidationError('Missing token', 'MISSING_TOKEN')
        self._load_caller(caller_uid)
        self.store.add_device_token(caller_uid, token)
        return {'ok': True}
