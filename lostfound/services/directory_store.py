"""
Directory store: the repository interface the services read and write through,
and its Firestore implementation.

Collections: users, lost_items, found_items, claims.
"""
import abc
import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import FailedPrecondition, GoogleAPIError
from google.cloud import firestore as gc_firestore

from ..errors import DependencyError, ValidationError
from ..models import Claim, ClaimStatus, Item, ItemStatus, ItemType, Role, UserProfile

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)


class DirectoryStore(abc.ABC):
    """Document store consumed by the assignment resolver and the claim lifecycle."""

    @abc.abstractmethod
    def get_user(self, uid: str) -> Optional[UserProfile]:
        ...

    @abc.abstractmethod
    def find_maintainers(self, field: str, value: str, limit: int = 1) -> List[UserProfile]:
        """Maintainer profiles whose array `field` ('locations' or 'categories') contains `value`."""

    @abc.abstractmethod
    def list_users(self) -> List[UserProfile]:
        ...

    @abc.abstractmethod
    def update_user(self, uid: str, updates: Dict[str, Any]) -> None:
        """Merge `updates` into users/{uid}, creating the document if needed."""

    @abc.abstractmethod
    def add_device_token(self, uid: str, token: str) -> None:
        ...

    @abc.abstractmethod
    def get_item(self, item_type: ItemType, item_id: str) -> Optional[Item]:
        ...

    @abc.abstractmethod
    def create_item(self, item: Item) -> str:
        ...

    @abc.abstractmethod
    def list_items(self, item_type: ItemType, status: ItemStatus = None) -> List[Item]:
        """Items of one variant, optionally filtered by status, newest first. Malformed documents are skipped."""

    @abc.abstractmethod
    def update_item(self, item_type: ItemType, item_id: str, updates: Dict[str, Any]) -> None:
        ...

    @abc.abstractmethod
    def get_claim(self, claim_id: str) -> Optional[Claim]:
        ...

    @abc.abstractmethod
    def create_claim(self, claim: Claim) -> str:
        ...

    @abc.abstractmethod
    def update_claim_if_status(self, claim_id: str, expected: ClaimStatus, updates: Dict[str, Any]) -> bool:
        """Apply `updates` only if the stored status still equals `expected`. Returns False otherwise."""

    @abc.abstractmethod
    def list_claims(self, assigned_maintainer_uid: str = None, claimant_uid: str = None,
                    status: ClaimStatus = None) -> List[Claim]:
        """Claims matching the filters, newest first. Malformed documents are skipped."""


def _store_call(func):
    """Surface Firestore client failures as DependencyError."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GoogleAPIError as e:
            _logger.error('Firestore call %s failed: %s', func.__name__, str(e))
            raise DependencyError(f'Directory store unavailable: {str(e)}', 'STORE_FAILED') from e
    return wrapper


class FirestoreDirectoryStore(DirectoryStore):
    def __init__(self, db):
        self.db = db

    @_store_call
    def get_user(self, uid):
        if not uid:
            return None
        snap = self.db.collection('users').document(uid).get()
        if not snap.exists:
            return None
        return UserProfile.from_dict(snap.id, snap.to_dict() or {})

    @_store_call
    def find_maintainers(self, field, value, limit=1):
        query = (self.db.collection('users')
                 .where('role', '==', Role.MAINTAINER.value)
                 .where(field, 'array_contains', value)
                 .limit(limit))
        return [UserProfile.from_dict(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    @_store_call
    def list_users(self):
        return [UserProfile.from_dict(doc.id, doc.to_dict() or {}) for doc in self.db.collection('users').stream()]

    @_store_call
    def update_user(self, uid, updates):
        self.db.collection('users').document(uid).set(updates, merge=True)

    @_store_call
    def add_device_token(self, uid, token):
        # Map keyed by token avoids duplicate entries
        self.db.collection('users').document(uid).set({
            'fcmTokens': {token: True},
            'fcmUpdatedAt': datetime.now(timezone.utc),
        }, merge=True)

    @_store_call
    def get_item(self, item_type, item_id):
        if not item_id:
            return None
        snap = self.db.collection(item_type.collection).document(item_id).get()
        if not snap.exists:
            return None
        return Item.from_dict(item_type, snap.id, snap.to_dict() or {})

    @_store_call
    def create_item(self, item):
        ref = self.db.collection(item.item_type.collection).document()
        ref.set(item.to_dict())
        return ref.id

    @_store_call
    def list_items(self, item_type, status=None):
        query = self.db.collection(item_type.collection)
        if status:
            query = query.where('status', '==', status.value)
        return _parse_docs(
            _newest_first(query, item_type.collection), item_type.collection,
            lambda doc_id, data: Item.from_dict(item_type, doc_id, data),
        )

    @_store_call
    def update_item(self, item_type, item_id, updates):
        self.db.collection(item_type.collection).document(item_id).update(updates)

    @_store_call
    def get_claim(self, claim_id):
        if not claim_id:
            return None
        snap = self.db.collection('claims').document(claim_id).get()
        if not snap.exists:
            return None
        return Claim.from_dict(snap.id, snap.to_dict() or {})

    @_store_call
    def create_claim(self, claim):
        ref = self.db.collection('claims').document()
        ref.set(claim.to_dict())
        return ref.id

    @_store_call
    def update_claim_if_status(self, claim_id, expected, updates):
        ref = self.db.collection('claims').document(claim_id)
        transaction = self.db.transaction()

        @gc_firestore.transactional
        def _apply(txn):
            snap = ref.get(transaction=txn)
            if not snap.exists:
                return False
            current = str((snap.to_dict() or {}).get('status', '')).strip().lower()
            if current != expected.value:
                return False
            txn.update(ref, updates)
            return True

        return _apply(transaction)

    @_store_call
    def list_claims(self, assigned_maintainer_uid=None, claimant_uid=None, status=None):
        query = self.db.collection('claims')
        if assigned_maintainer_uid:
            query = query.where('assignedMaintainerUid', '==', assigned_maintainer_uid)
        if claimant_uid:
            query = query.where('claimantUid', '==', claimant_uid)
        if status:
            query = query.where('status', '==', status.value)

        return _parse_docs(_newest_first(query, 'claims'), 'claims', Claim.from_dict)


def _newest_first(query, label):
    try:
        return list(query.order_by('createdAt', direction=firestore.Query.DESCENDING).stream())
    except FailedPrecondition:
        # Missing composite index: sort client-side instead
        _logger.warning('Composite index missing for %s query; sorting in memory', label)
        return sorted(query.stream(), key=_created_at_key, reverse=True)


def _parse_docs(docs, label, parse):
    """Parse listing results; documents that fail validation are logged and skipped."""
    out = []
    for doc in docs:
        try:
            out.append(parse(doc.id, doc.to_dict() or {}))
        except ValidationError as e:
            _logger.warning('Skipping malformed %s document %s: %s', label, doc.id, e.message)
    return out


def _created_at_key(doc):
    ts = (doc.to_dict() or {}).get('createdAt')
    try:
        return ts.timestamp() if hasattr(ts, 'timestamp') else 0
    except Exception:
        return 0
