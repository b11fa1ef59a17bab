import copy
import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from lostfound.errors import DependencyError, ValidationError
from lostfound.models import (
    Assignee, Claim, Item, ItemStatus, ItemType, UserProfile,
)
from lostfound.services.claim_service import ClaimService
from lostfound.services.directory_store import DirectoryStore
from lostfound.services.item_service import ItemService
from lostfound.services.notification_service import DeliveryResult, NotificationDispatcher


def _newest_first(records):
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(records, key=lambda r: r.created_at or epoch, reverse=True)


class InMemoryDirectoryStore(DirectoryStore):
    """Dict-backed store. Documents round-trip through to_dict/from_dict like Firestore."""

    def __init__(self):
        self.users = {}
        self.docs = {'lost_items': {}, 'found_items': {}, 'claims': {}}
        self._ids = itertools.count(1)

    def add_user(self, uid, **fields):
        self.users[uid] = dict(fields)
        return uid

    def get_user(self, uid):
        data = self.users.get(uid)
        return UserProfile.from_dict(uid, copy.deepcopy(data)) if data is not None else None

    def find_maintainers(self, field, value, limit=1):
        matches = [
            UserProfile.from_dict(uid, copy.deepcopy(data))
            for uid, data in self.users.items()
            if data.get('role') == 'maintainer' and value in (data.get(field) or [])
        ]
        return matches[:limit]

    def list_users(self):
        return [UserProfile.from_dict(uid, copy.deepcopy(data)) for uid, data in self.users.items()]

    def update_user(self, uid, updates):
        self.users.setdefault(uid, {}).update(copy.deepcopy(updates))

    def add_device_token(self, uid, token):
        self.users.setdefault(uid, {}).setdefault('fcmTokens', {})[token] = True

    def get_item(self, item_type, item_id):
        data = self.docs[item_type.collection].get(item_id)
        return Item.from_dict(item_type, item_id, copy.deepcopy(data)) if data is not None else None

    def create_item(self, item):
        item_id = f"{item.item_type.value}-{next(self._ids)}"
        self.docs[item.item_type.collection][item_id] = copy.deepcopy(item.to_dict())
        return item_id

    def list_items(self, item_type, status=None):
        out = []
        for item_id, data in self.docs[item_type.collection].items():
            if status and data.get('status') != status.value:
                continue
            try:
                out.append(Item.from_dict(item_type, item_id, copy.deepcopy(data)))
            except ValidationError:
                continue
        return _newest_first(out)

    def update_item(self, item_type, item_id, updates):
        doc = self.docs[item_type.collection].get(item_id)
        if doc is None:
            raise DependencyError(f'No document to update: {item_type.collection}/{item_id}', 'STORE_FAILED')
        doc.update(copy.deepcopy(updates))

    def get_claim(self, claim_id):
        data = self.docs['claims'].get(claim_id)
        return Claim.from_dict(claim_id, copy.deepcopy(data)) if data is not None else None

    def create_claim(self, claim):
        claim_id = f"claim-{next(self._ids)}"
        self.docs['claims'][claim_id] = copy.deepcopy(claim.to_dict())
        return claim_id

    def update_claim_if_status(self, claim_id, expected, updates):
        doc = self.docs['claims'].get(claim_id)
        if doc is None or doc.get('status') != expected.value:
            return False
        doc.update(copy.deepcopy(updates))
        return True

    def list_claims(self, assigned_maintainer_uid=None, claimant_uid=None, status=None):
        out = []
        for claim_id, data in self.docs['claims'].items():
            if assigned_maintainer_uid and data.get('assignedMaintainerUid') != assigned_maintainer_uid:
                continue
            if claimant_uid and data.get('claimantUid') != claimant_uid:
                continue
            if status and data.get('status') != status.value:
                continue
            try:
                out.append(Claim.from_dict(claim_id, copy.deepcopy(data)))
            except ValidationError:
                continue
        return _newest_first(out)

    # Test helpers
    def item_doc(self, item_type, item_id):
        return self.docs[item_type.collection][item_id]

    def claim_doc(self, claim_id):
        return self.docs['claims'][claim_id]


class TickingClock:
    """Deterministic clock: each call is one minute after the previous one."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def store():
    s = InMemoryDirectoryStore()
    s.add_user('A1', role='admin', name='Ada Admin', email='ada@campus.edu')
    s.add_user('S1', role='student', name='Sam Student', email='sam@campus.edu')
    s.add_user('T1', role='teacher', name='Tess Teacher', email='tess@campus.edu')
    return s


@pytest.fixture
def dispatcher():
    d = Mock(spec=NotificationDispatcher)
    d.notify_claim_created.return_value = DeliveryResult.delivered({'successCount': 1})
    d.notify_claim_status.return_value = DeliveryResult.delivered({'successCount': 1})
    return d


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def claim_service(store, dispatcher, clock):
    return ClaimService(store, dispatcher, min_proof_length=12, clock=clock)


@pytest.fixture
def item_service(store, clock):
    return ItemService(store, min_secret_proof_length=8, clock=clock)


def make_item(store, item_type=ItemType.LOST, assignment=None, status=ItemStatus.OPEN,
              title='Black Wallet', category='Wallet', location='Library', secret_proof='torn corner sticker',
              created_at=None):
    item = Item(
        id='',
        item_type=item_type,
        title=title,
        category=category,
        status=status,
        location=location,
        reporter_uid='S9',
        assignment=assignment,
        secret_proof=secret_proof if item_type is ItemType.LOST else None,
        created_at=created_at or datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    return store.create_item(item)


@pytest.fixture
def maintainer_assignment():
    return Assignee('M1', 'Maya Maintainer', 'Block A', '9:00 AM – 5:00 PM')


@pytest.fixture
def store_with_maintainer(store):
    store.add_user('M1', role='maintainer', name='Maya Maintainer', locations=['library'],
                   categories=[], collectionPoint='Block A', officeHours='9:00 AM – 5:00 PM')
    store.add_user('M2', role='maintainer', name='Milo Maintainer', locations=['gym'],
                   categories=['wallet'], collectionPoint='Block B')
    return store

