"""
Claim lifecycle:
- Create a claim against a lost/found item, freezing the item's assignment
- Approve or reject a pending claim (assigned maintainer or admin)
- Record the physical hand-over of an approved item
- Reviewer / claimant listings

State changes are committed before notifications go out, and notification
failures are only logged.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..errors import PreconditionError, ValidationError
from ..models import Assignee, Claim, ClaimStatus, ItemStatus, ItemType, Role
from .authorization import authorize_decision, ensure_enabled
from .directory_store import DirectoryStore
from .notification_service import DeliveryResult, NotificationDispatcher, NullDispatcher, log_delivery

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)

DEFAULT_MIN_PROOF_LENGTH = 12


def _parse_outcome(outcome) -> ClaimStatus:
    status = ClaimStatus.parse(outcome)
    if not status.is_terminal:
        raise ValidationError("Outcome must be 'approved' or 'rejected'", 'INVALID_OUTCOME')
    return status


class ClaimService:
    def __init__(self, store: DirectoryStore, dispatcher: NotificationDispatcher = None,
                 min_proof_length: int = DEFAULT_MIN_PROOF_LENGTH, clock=None):
        self.store = store
        self.dispatcher = dispatcher or NullDispatcher()
        self.min_proof_length = min_proof_length
        self._clock = clock

    def _now(self) -> datetime:
        return self._clock() if self._clock else datetime.now(timezone.utc)

    def _load_actor(self, uid: str):
        profile = self.store.get_user(uid)
        ensure_enabled(profile)
        return profile

    def _load_claim(self, claim_id: str) -> Claim:
        claim = self.store.get_claim(claim_id) if claim_id else None
        if claim is None:
            raise PreconditionError('Claim not found', 'CLAIM_NOT_FOUND', 404)
        return claim

    def _dispatch(self, event: str, send, claim_id: str, caller_uid: str, id_token: Optional[str]) -> DeliveryResult:
        try:
            result = send(claim_id, caller_uid, id_token)
        except Exception as e:
            result = DeliveryResult.failed(str(e) or e.__class__.__name__)
        log_delivery(event, claim_id, result)
        return result

    def create_claim(self, item_type, item_id: str, claimant_uid: str, claimant_email: str,
                     proof_text: str, id_token: Optional[str] = None) -> str:
        """
        File a pending claim for an item.

        Returns: the new claim id
        Raises: ValidationError for bad input or a dangling item reference,
                PreconditionError when the item is no longer open or the account is disabled
        """
        if not claimant_uid:
            raise ValidationError('Claimant must be signed in', 'UNAUTHENTICATED', 401)
        item_type = ItemType.parse(item_type)
        if not item_id:
            raise ValidationError('Missing item reference', 'MISSING_ITEM')
        proof = (proof_text or '').strip()
        if len(proof) < self.min_proof_length:
            raise ValidationError(
                f'Proof must be at least {self.min_proof_length} characters', 'PROOF_TOO_SHORT'
            )

        self._load_actor(claimant_uid)

        item = self.store.get_item(item_type, item_id)
        if item is None:
            raise ValidationError('Item not found', 'ITEM_NOT_FOUND', 404)
        if item.status is not ItemStatus.OPEN:
            raise PreconditionError(
                f'Item is no longer open for claims (status: {item.status.value})', 'ITEM_UNAVAILABLE', 409
            )

        claim = Claim(
            id='',
            item_type=item_type,
            item_id=item.id,
            claimant_uid=claimant_uid,
            claimant_email=claimant_email or '',
            proof_text=proof,
            # Frozen copy: later item re-assignment must not move this claim
            assignment=item.assignment or Assignee.central(),
            status=ClaimStatus.PENDING,
            item_title=item.title,
            category=item.category,
            location=item.location,
            created_at=self._now(),
        )
        claim_id = self.store.create_claim(claim)
        _logger.info('Claim %s created by %s for %s item %s (assignee %s)',
                     claim_id, claimant_uid, item_type.value, item.id, claim.assignment.assigned_maintainer_uid)

        self._dispatch('claim-created', self.dispatcher.notify_claim_created, claim_id, claimant_uid, id_token)
        return claim_id

    def decide(self, claim_id: str, acting_uid: str, acting_role, outcome,
               rejection_reason: Optional[str] = None, acting_name: Optional[str] = None,
               id_token: Optional[str] = None) -> None:
        """
        Approve or reject a pending claim.

        Order of writes: claim (conditional on still being pending), then the
        item on approval, then the claimant notification.
        """
        status = _parse_outcome(outcome)
        claim = self._load_claim(claim_id)
        if claim.status is not ClaimStatus.PENDING:
            raise PreconditionError(
                f'Claim already processed (status={claim.status.value})', 'CLAIM_NOT_PENDING', 409
            )
        authorize_decision(acting_uid, acting_role, claim)

        reason = (rejection_reason or '').strip()
        if status is ClaimStatus.REJECTED and not reason:
            raise ValidationError('Rejection reason is required', 'REJECTION_REASON_REQUIRED')

        actor = self._load_actor(acting_uid)
        now = self._now()
        updates = {
            'status': status.value,
            'rejectedReason': reason if status is ClaimStatus.REJECTED else '',
            'verifiedByUid': acting_uid,
            'verifiedByName': acting_name or (actor.name if actor else ''),
            'verifiedAt': now,
        }
        if not self.store.update_claim_if_status(claim.id, ClaimStatus.PENDING, updates):
            raise PreconditionError('Claim was already processed by someone else', 'CLAIM_NOT_PENDING', 409)

        if status is ClaimStatus.APPROVED:
            try:
                self.store.update_item(claim.item_type, claim.item_id, {
                    'status': claim.item_type.pickup_status.value,
                    'lastActionAt': now,
                })
            except Exception as e:
                _logger.error('Claim %s approved but item %s/%s was not marked ready: %s',
                              claim.id, claim.item_type.collection, claim.item_id, str(e))
                raise

        _logger.info('Claim %s %s by %s (%s)', claim.id, status.value, acting_uid, Role.parse(acting_role).value)
        self._dispatch('claim-status', self.dispatcher.notify_claim_status, claim.id, acting_uid, id_token)

    def confirm_pickup(self, claim_id: str, acting_uid: str, acting_role) -> ItemStatus:
        """Record that the claimant collected an approved item."""
        claim = self._load_claim(claim_id)
        authorize_decision(acting_uid, acting_role, claim)
        if claim.status is not ClaimStatus.APPROVED:
            raise PreconditionError(
                f'Only approved claims can be handed over (status={claim.status.value})', 'CLAIM_NOT_APPROVED', 409
            )
        self._load_actor(acting_uid)

        item = self.store.get_item(claim.item_type, claim.item_id)
        if item is None:
            raise PreconditionError('Item not found', 'ITEM_NOT_FOUND', 404)
        if item.status is not ItemStatus.READY_FOR_PICKUP:
            raise PreconditionError(
                f'Item is not waiting for pickup (status: {item.status.value})', 'ITEM_NOT_READY', 409
            )

        new_status = claim.item_type.handover_status
        self.store.update_item(claim.item_type, claim.item_id, {
            'status': new_status.value,
            'handedOverByUid': acting_uid,
            'handedOverTo': claim.claimant_uid,
            'lastActionAt': self._now(),
        })
        _logger.info('Item %s/%s %s to %s via claim %s',
                     claim.item_type.collection, claim.item_id, new_status.value, claim.claimant_uid, claim.id)
        return new_status

    def get_claim_review(self, claim_id: str, acting_uid: str, acting_role) -> Dict[str, Any]:
        """Claim plus the item's hidden secret proof, for the reviewer only."""
        claim = self._load_claim(claim_id)
        authorize_decision(acting_uid, acting_role, claim)
        item = self.store.get_item(claim.item_type, claim.item_id)
        return {
            'claim': claim.to_api_dict(),
            'item': item.to_api_dict(include_secret=True) if item else None,
        }

    def list_claims_for_reviewer(self, acting_uid: str, acting_role, status=None) -> List[Claim]:
        role = Role.parse(acting_role)
        status = ClaimStatus.parse(status) if status else None
        if role is Role.ADMIN:
            return self.store.list_claims(status=status)
        if role is Role.MAINTAINER:
            return self.store.list_claims(assigned_maintainer_uid=acting_uid, status=status)
        raise PreconditionError('Only maintainers and admins can review claims', 'FORBIDDEN_ROLE', 403)

    def list_claims_for_claimant(self, claimant_uid: str, status=None) -> List[Claim]:
        if not claimant_uid:
            raise ValidationError('Claimant must be signed in', 'UNAUTHENTICATED', 401)
        status = ClaimStatus.parse(status) if status else None
        return self.store.list_claims(claimant_uid=claimant_uid, status=status)
