"""
Item reports: lost items (with a hidden secret proof) and found items.
Every report is assigned to a maintainer when it is created.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from ..errors import PreconditionError, ValidationError
from ..models import Assignee, Item, ItemStatus, ItemType, Role
from .assignment_service import resolve_assignee
from .authorization import ensure_enabled
from .directory_store import DirectoryStore
from .image_validation_service import ImageValidationService

_logger = logging.getLogger(__name__)
_logger.setLevel(logging.INFO)

_TERMINAL_ITEM_STATUSES = (ItemStatus.RETURNED, ItemStatus.HANDED_OVER)


def _created_at_key(item: Item) -> float:
    ts = item.created_at
    return ts.timestamp() if hasattr(ts, 'timestamp') else 0


def _text(data: Dict[str, Any], key: str) -> str:
    return str(data.get(key) or '').strip()


class ItemService:
    def __init__(self, store: DirectoryStore, min_secret_proof_length: int = 8,
                 max_image_data_length: int = ImageValidationService.MAX_DATA_URL_LENGTH, clock=None):
        self.store = store
        self.min_secret_proof_length = min_secret_proof_length
        self.max_image_data_length = max_image_data_length
        self._clock = clock

    def _now(self) -> datetime:
        return self._clock() if self._clock else datetime.now(timezone.utc)

    def _validate_image(self, data_url):
        if not data_url:
            return None
        result = ImageValidationService.validate_data_url(data_url, self.max_image_data_length)
        if not result['success']:
            raise ValidationError('; '.join(result['errors']) or 'Image validation failed', 'INVALID_IMAGE')
        return data_url

    def _report(self, item_type: ItemType, reporter_uid: str, reporter_email: str,
                data: Dict[str, Any]) -> Tuple[str, Assignee]:
        if not reporter_uid:
            raise ValidationError('Reporter must be signed in', 'UNAUTHENTICATED', 401)
        data = data or {}
        title = _text(data, 'title')
        category = _text(data, 'category')
        location = _text(data, item_type.location_field) or _text(data, 'location')
        secret_proof = _text(data, 'secretProof')

        if not title:
            raise ValidationError('Please enter item title.', 'MISSING_TITLE')
        if not category:
            raise ValidationError('Please select a category.', 'MISSING_CATEGORY')
        if not location:
            raise ValidationError('Please enter the location.', 'MISSING_LOCATION')
        if item_type is ItemType.LOST and len(secret_proof) < self.min_secret_proof_length:
            raise ValidationError(
                f'Hidden proof detail must be at least {self.min_secret_proof_length} characters',
                'SECRET_PROOF_TOO_SHORT'
            )
        image_data = self._validate_image(data.get('imageData'))

        ensure_enabled(self.store.get_user(reporter_uid))

        # Never fails: degrades to the central office
        assignee = resolve_assignee(self.store, location, category)

        item = Item(
            id='',
            item_type=item_type,
            title=title,
            category=category,
            status=ItemStatus.OPEN,
            location=location,
            reporter_uid=reporter_uid,
            assignment=assignee,
            secret_proof=secret_proof or None,
            image_data=image_data,
            reporter_email=reporter_email or '',
            description=_text(data, 'description'),
            color=_text(data, 'color'),
            event_date=_text(data, item_type.date_field) or None,
            created_at=self._now(),
        )
        item_id = self.store.create_item(item)
        _logger.info('%s item %s reported by %s, assigned to %s',
                     item_type.value, item_id, reporter_uid, assignee.assigned_maintainer_uid)
        return item_id, assignee

    def report_lost_item(self, reporter_uid: str, reporter_email: str, data: Dict[str, Any]):
        return self._report(ItemType.LOST, reporter_uid, reporter_email, data)

    def report_found_item(self, finder_uid: str, finder_email: str, data: Dict[str, Any]):
        return self._report(ItemType.FOUND, finder_uid, finder_email, data)

    def get_item(self, item_type, item_id: str) -> Item:
        item_type = ItemType.parse(item_type)
        item = self.store.get_item(item_type, item_id)
        if item is None:
            raise ValidationError('Item not found', 'ITEM_NOT_FOUND', 404)
        return item

    def list_items(self, item_type=None, status=None) -> List[Item]:
        """Browse reports newest first. Both variants are merged when no type is given."""
        status = ItemStatus.parse(status) if status else None
        types = [ItemType.parse(item_type)] if item_type else list(ItemType)
        items = []
        for t in types:
            items.extend(self.store.list_items(t, status))
        if len(types) > 1:
            items.sort(key=_created_at_key, reverse=True)
        return items

    def reassign_item(self, item_type, item_id: str, acting_uid: str, acting_role) -> Assignee:
        """
        Re-run the assignment resolver for an item (admin only).
        Claims already filed keep the assignment they were created with.
        """
        if Role.parse(acting_role) is not Role.ADMIN:
            raise PreconditionError('Only admins can reassign items', 'FORBIDDEN_ROLE', 403)
        ensure_enabled(self.store.get_user(acting_uid))
        item = self.get_item(item_type, item_id)
        if item.status in _TERMINAL_ITEM_STATUSES:
            raise PreconditionError(
                f'Item is closed (status: {item.status.value})', 'ITEM_CLOSED', 409
            )

        assignee = resolve_assignee(self.store, item.location, item.category)
        updates = assignee.to_dict()
        updates['lastActionAt'] = self._now()
        self.store.update_item(item.item_type, item.id, updates)
        _logger.info('Item %s/%s reassigned by %s to %s',
                     item.item_type.collection, item.id, acting_uid, assignee.assigned_maintainer_uid)
        return assignee
