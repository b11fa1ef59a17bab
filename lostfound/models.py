"""
Typed documents for the users, lost_items, found_items and claims collections.

Documents are stored with camelCase keys. Parsing happens once, at the store
boundary: a document missing a required field raises ValidationError instead
of being silently defaulted.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ValidationError

CENTRAL_UID = 'CENTRAL'
CENTRAL_NAME = 'Central Lost & Found'
CENTRAL_COLLECTION_POINT = 'Central Office / Security Desk'
DEFAULT_OFFICE_HOURS = '10:00 AM – 4:00 PM'
DEFAULT_MAINTAINER_NAME = 'Maintainer'
DEFAULT_MAINTAINER_OFFICE = 'Maintainer Office'


class Role(str, Enum):
    STUDENT = 'student'
    TEACHER = 'teacher'
    MAINTAINER = 'maintainer'
    ADMIN = 'admin'

    @classmethod
    def parse(cls, value) -> Optional['Role']:
        """Return the Role for a raw value, or None when it is missing or unknown."""
        if isinstance(value, Role):
            return value
        raw = str(value or '').strip().lower()
        for role in cls:
            if role.value == raw:
                return role
        return None

    @property
    def is_reviewer(self) -> bool:
        return self in (Role.MAINTAINER, Role.ADMIN)

    @property
    def is_claimant(self) -> bool:
        return self in (Role.STUDENT, Role.TEACHER)


class ItemStatus(str, Enum):
    OPEN = 'open'
    READY_FOR_PICKUP = 'ready_for_pickup'
    RETURNED = 'returned'
    HANDED_OVER = 'handed_over'

    @classmethod
    def parse(cls, value) -> 'ItemStatus':
        if isinstance(value, ItemStatus):
            return value
        raw = str(value or '').strip().lower()
        for status in cls:
            if status.value == raw:
                return status
        raise ValidationError(f"Invalid item status '{value}'", 'INVALID_ITEM_STATUS')


class ItemType(str, Enum):
    LOST = 'lost'
    FOUND = 'found'

    @classmethod
    def parse(cls, value) -> 'ItemType':
        if isinstance(value, ItemType):
            return value
        raw = str(value or '').strip().lower()
        for item_type in cls:
            if item_type.value == raw:
                return item_type
        raise ValidationError(f"Invalid item type '{value}'", 'INVALID_ITEM_TYPE')

    @property
    def collection(self) -> str:
        return 'lost_items' if self is ItemType.LOST else 'found_items'

    @property
    def location_field(self) -> str:
        return 'lastSeenLocation' if self is ItemType.LOST else 'foundLocation'

    @property
    def reporter_field(self) -> str:
        return 'reportedBy' if self is ItemType.LOST else 'foundByUid'

    @property
    def date_field(self) -> str:
        return 'lostDate' if self is ItemType.LOST else 'foundDate'

    @property
    def pickup_status(self) -> ItemStatus:
        # Both variants wait at the collection point after approval
        return ItemStatus.READY_FOR_PICKUP

    @property
    def handover_status(self) -> ItemStatus:
        return ItemStatus.RETURNED if self is ItemType.LOST else ItemStatus.HANDED_OVER


class ClaimStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    @classmethod
    def parse(cls, value) -> 'ClaimStatus':
        if isinstance(value, ClaimStatus):
            return value
        raw = str(value or '').strip().lower()
        for status in cls:
            if status.value == raw:
                return status
        raise ValidationError(f"Invalid claim status '{value}'", 'INVALID_CLAIM_STATUS')

    @property
    def is_terminal(self) -> bool:
        return self is not ClaimStatus.PENDING


def _require(data: Dict[str, Any], key: str, label: str):
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label} is missing required field '{key}'", 'MALFORMED_DOCUMENT', 422)
    return value


def _isoformat_or_none(dt) -> Optional[str]:
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return dt.isoformat()
    return str(dt)


@dataclass(frozen=True)
class Assignee:
    assigned_maintainer_uid: str
    assigned_maintainer_name: str
    collection_point: str
    office_hours: str

    @classmethod
    def central(cls) -> 'Assignee':
        return cls(CENTRAL_UID, CENTRAL_NAME, CENTRAL_COLLECTION_POINT, DEFAULT_OFFICE_HOURS)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['Assignee']:
        """Read the four assignment fields; None when no maintainer uid is recorded."""
        uid = (data or {}).get('assignedMaintainerUid')
        if not uid:
            return None
        return cls(
            assigned_maintainer_uid=uid,
            assigned_maintainer_name=data.get('assignedMaintainerName') or DEFAULT_MAINTAINER_NAME,
            collection_point=data.get('collectionPoint') or DEFAULT_MAINTAINER_OFFICE,
            office_hours=data.get('officeHours') or DEFAULT_OFFICE_HOURS,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'assignedMaintainerUid': self.assigned_maintainer_uid,
            'assignedMaintainerName': self.assigned_maintainer_name,
            'collectionPoint': self.collection_point,
            'officeHours': self.office_hours,
        }


@dataclass
class UserProfile:
    uid: str
    role: Optional[Role]
    name: str = ''
    email: str = ''
    locations: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    collection_point: Optional[str] = None
    office_hours: Optional[str] = None
    disabled: bool = False
    disabled_reason: str = ''
    fcm_tokens: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, uid: str, data: Dict[str, Any]) -> 'UserProfile':
        data = data or {}
        tokens = data.get('fcmTokens') or {}
        return cls(
            uid=uid,
            role=Role.parse(data.get('role')),
            name=data.get('name') or '',
            email=data.get('email') or '',
            locations=list(data.get('locations') or []),
            categories=list(data.get('categories') or []),
            collection_point=data.get('collectionPoint'),
            office_hours=data.get('officeHours'),
            disabled=bool(data.get('disabled', False)),
            disabled_reason=data.get('disabledReason') or '',
            fcm_tokens=[t for t, enabled in tokens.items() if enabled] if isinstance(tokens, dict) else [],
        )

    def to_assignee(self) -> Assignee:
        return Assignee(
            assigned_maintainer_uid=self.uid,
            assigned_maintainer_name=self.name or DEFAULT_MAINTAINER_NAME,
            collection_point=self.collection_point or DEFAULT_MAINTAINER_OFFICE,
            office_hours=self.office_hours or DEFAULT_OFFICE_HOURS,
        )

    def to_api_dict(self) -> Dict[str, Any]:
        return {
            'uid': self.uid,
            'role': self.role.value if self.role else None,
            'name': self.name,
            'email': self.email,
            'locations': list(self.locations),
            'categories': list(self.categories),
            'collectionPoint': self.collection_point,
            'officeHours': self.office_hours,
            'disabled': self.disabled,
            'disabledReason': self.disabled_reason,
        }


@dataclass
class Item:
    id: str
    item_type: ItemType
    title: str
    category: str
    status: ItemStatus
    location: str
    reporter_uid: str
    assignment: Optional[Assignee] = None
    secret_proof: Optional[str] = None
    image_data: Optional[str] = None
    reporter_email: str = ''
    description: str = ''
    color: str = ''
    event_date: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, item_type: ItemType, item_id: str, data: Dict[str, Any]) -> 'Item':
        data = data or {}
        label = f"{item_type.collection}/{item_id}"
        raw_status = _require(data, 'status', label)
        try:
            status = ItemStatus(str(raw_status).strip().lower())
        except ValueError:
            raise ValidationError(f"{label} has unknown status '{raw_status}'", 'MALFORMED_DOCUMENT', 422)
        return cls(
            id=item_id,
            item_type=item_type,
            title=_require(data, 'title', label),
            category=_require(data, 'category', label),
            status=status,
            location=data.get(item_type.location_field) or '',
            reporter_uid=_require(data, item_type.reporter_field, label),
            assignment=Assignee.from_dict(data),
            secret_proof=data.get('secretProof'),
            image_data=data.get('imageData') or None,
            reporter_email=data.get('reporterEmail') or '',
            description=data.get('description') or '',
            color=data.get('color') or '',
            event_date=data.get(item_type.date_field),
            created_at=data.get('createdAt'),
        )

    def to_dict(self) -> Dict[str, Any]:
        doc = {
            'title': self.title,
            'category': self.category,
            'status': self.status.value,
            self.item_type.location_field: self.location,
            self.item_type.reporter_field: self.reporter_uid,
            'reporterEmail': self.reporter_email,
            'description': self.description,
            'color': self.color,
            'imageData': self.image_data or '',
            'createdAt': self.created_at,
        }
        if self.event_date:
            doc[self.item_type.date_field] = self.event_date
        if self.secret_proof is not None:
            doc['secretProof'] = self.secret_proof
        if self.assignment:
            doc.update(self.assignment.to_dict())
        return doc

    def to_api_dict(self, include_secret: bool = False) -> Dict[str, Any]:
        doc = self.to_dict()
        if not include_secret:
            doc.pop('secretProof', None)
        doc['id'] = self.id
        doc['itemType'] = self.item_type.value
        doc['createdAt'] = _isoformat_or_none(self.created_at)
        return doc


@dataclass
class Claim:
    id: str
    item_type: ItemType
    item_id: str
    claimant_uid: str
    proof_text: str
    assignment: Assignee
    status: ClaimStatus = ClaimStatus.PENDING
    item_title: str = ''
    category: str = ''
    location: str = ''
    claimant_email: str = ''
    rejected_reason: str = ''
    verified_by_uid: Optional[str] = None
    verified_by_name: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, claim_id: str, data: Dict[str, Any]) -> 'Claim':
        data = data or {}
        label = f"claims/{claim_id}"
        item_type = ItemType.parse(_require(data, 'itemType', label))
        _require(data, 'assignedMaintainerUid', label)
        return cls(
            id=claim_id,
            item_type=item_type,
            item_id=_require(data, 'itemId', label),
            claimant_uid=_require(data, 'claimantUid', label),
            proof_text=data.get('proofText') or '',
            assignment=Assignee.from_dict(data),
            status=ClaimStatus.parse(_require(data, 'status', label)),
            item_title=data.get('itemTitle') or '',
            category=data.get('category') or '',
            location=data.get('location') or '',
            claimant_email=data.get('claimantEmail') or '',
            rejected_reason=data.get('rejectedReason') or '',
            verified_by_uid=data.get('verifiedByUid'),
            verified_by_name=data.get('verifiedByName'),
            verified_at=data.get('verifiedAt'),
            created_at=data.get('createdAt'),
        )

    def to_dict(self) -> Dict[str, Any]:
        doc = {
            'itemType': self.item_type.value,
            'itemId': self.item_id,
            'itemTitle': self.item_title,
            'category': self.category,
            'location': self.location,
            'claimantUid': self.claimant_uid,
            'claimantEmail': self.claimant_email,
            'proofText': self.proof_text,
            'status': self.status.value,
            'rejectedReason': self.rejected_reason,
            'verifiedByUid': self.verified_by_uid,
            'verifiedByName': self.verified_by_name,
            'verifiedAt': self.verified_at,
            'createdAt': self.created_at,
        }
        doc.update(self.assignment.to_dict())
        return doc

    def to_api_dict(self) -> Dict[str, Any]:
        doc = self.to_dict()
        doc['id'] = self.id
        doc['verifiedAt'] = _isoformat_or_none(self.verified_at)
        doc['createdAt'] = _isoformat_or_none(self.created_at)
        return doc
