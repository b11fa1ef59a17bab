import base64
import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from conftest import make_item
from lostfound.errors import PreconditionError, ValidationError
from lostfound.models import CENTRAL_UID, Assignee, ItemStatus, ItemType
from lostfound.services.image_validation_service import ImageValidationService


def _data_url(fmt='PNG', size=(4, 4)):
    buf = io.BytesIO()
    Image.new('RGB', size, 'red').save(buf, fmt)
    mime = 'jpeg' if fmt == 'JPEG' else fmt.lower()
    return f'data:image/{mime};base64,' + base64.b64encode(buf.getvalue()).decode('ascii')


def _lost(**overrides):
    data = {
        'title': 'Blue Water Bottle',
        'category': 'Bottle',
        'lastSeenLocation': 'Gym',
        'secretProof': 'dent near the cap',
        'lostDate': '2026-03-01',
        'color': 'Blue',
    }
    data.update(overrides)
    return data


class TestReportItems:
    def test_lost_report_is_assigned_and_open(self, item_service, store_with_maintainer):
        item_id, assignee = item_service.report_lost_item('S1', 'sam@campus.edu', _lost())

        assert assignee.assigned_maintainer_uid == 'M2'
        item = store_with_maintainer.get_item(ItemType.LOST, item_id)
        assert item.status is ItemStatus.OPEN
        assert item.assignment == assignee
        assert item.secret_proof == 'dent near the cap'
        assert item.event_date == '2026-03-01'
        assert item.reporter_uid == 'S1'
        assert item.created_at is not None

    def test_found_report_accepts_generic_location(self, item_service, store):
        item_id, assignee = item_service.report_found_item('T1', '', {
            'title': 'Keys', 'category': 'Keys', 'location': 'Parking',
        })
        assert assignee == Assignee.central()
        doc = store.item_doc(ItemType.FOUND, item_id)
        assert doc['foundLocation'] == 'Parking'
        assert doc['foundByUid'] == 'T1'
        assert 'secretProof' not in doc

    @pytest.mark.parametrize('field,code', [
        ('title', 'MISSING_TITLE'),
        ('category', 'MISSING_CATEGORY'),
        ('lastSeenLocation', 'MISSING_LOCATION'),
    ])
    def test_required_fields(self, item_service, store, field, code):
        with pytest.raises(ValidationError) as exc:
            item_service.report_lost_item('S1', '', _lost(**{field: '   '}))
        assert exc.value.code == code
        assert store.docs['lost_items'] == {}

    def test_lost_report_needs_secret_proof(self, item_service):
        with pytest.raises(ValidationError) as exc:
            item_service.report_lost_item('S1', '', _lost(secretProof='short'))
        assert exc.value.code == 'SECRET_PROOF_TOO_SHORT'

    def test_requires_signed_in_reporter(self, item_service):
        with pytest.raises(ValidationError) as exc:
            item_service.report_lost_item(None, '', _lost())
        assert exc.value.status_code == 401

    def test_disabled_reporter(self, item_service, store):
        store.users['S1']['disabled'] = True
        with pytest.raises(PreconditionError) as exc:
            item_service.report_lost_item('S1', '', _lost())
        assert exc.value.code == 'ACCOUNT_DISABLED'

    def test_valid_image_is_stored(self, item_service, store):
        url = _data_url()
        item_id, _ = item_service.report_lost_item('S1', '', _lost(imageData=url))
        assert store.item_doc(ItemType.LOST, item_id)['imageData'] == url

    def test_invalid_image_is_rejected(self, item_service, store):
        with pytest.raises(ValidationError) as exc:
            item_service.report_lost_item('S1', '', _lost(imageData='data:image/png;base64,not-base64!!'))
        assert exc.value.code == 'INVALID_IMAGE'
        assert store.docs['lost_items'] == {}


class TestImageValidation:
    def test_png_info(self):
        result = ImageValidationService.validate_data_url(_data_url(size=(7, 3)))
        assert result['success'] is True
        assert result['image_info']['format'] == 'PNG'
        assert (result['image_info']['width'], result['image_info']['height']) == (7, 3)

    def test_size_limit(self):
        result = ImageValidationService.validate_data_url(_data_url(), max_length=20)
        assert result['success'] is False
        assert 'too large' in result['errors'][0]

    def test_unsupported_format(self):
        result = ImageValidationService.validate_data_url(_data_url('BMP'))
        assert result['success'] is False
        assert 'Unsupported image format' in result['errors'][0]

    @pytest.mark.parametrize('value', [
        'http://example.com/cat.png',
        'data:image/png,plain-text',
        'data:image/png;base64,' + base64.b64encode(b'not an image').decode('ascii'),
        None,
    ])
    def test_rejects_non_images(self, value):
        assert ImageValidationService.validate_data_url(value)['success'] is False

    @pytest.mark.parametrize('size', [(30, 30), (12, 12)])
    def test_rejects_oversized_pixel_counts(self, monkeypatch, size):
        monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
        result = ImageValidationService.validate_data_url(_data_url(size=size))
        assert result['success'] is False
        assert result['errors'] == ['Image dimensions are too large']

    def test_oversized_image_report_is_a_validation_error(self, item_service, store, monkeypatch):
        monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
        with pytest.raises(ValidationError) as exc:
            item_service.report_lost_item('S1', '', _lost(imageData=_data_url(size=(30, 30))))
        assert exc.value.code == 'INVALID_IMAGE'
        assert store.docs['lost_items'] == {}


class TestGetAndReassign:
    def test_get_item(self, item_service, store):
        item_id = make_item(store)
        assert item_service.get_item('lost', item_id).title == 'Black Wallet'
        with pytest.raises(ValidationError) as exc:
            item_service.get_item('found', item_id)
        assert exc.value.status_code == 404

    def test_reassign_after_directory_change(self, item_service, store_with_maintainer):
        item_id = make_item(store_with_maintainer, assignment=Assignee.central(), location='Library')
        assignee = item_service.reassign_item('lost', item_id, 'A1', 'admin')
        assert assignee.assigned_maintainer_uid == 'M1'
        assert store_with_maintainer.item_doc(ItemType.LOST, item_id)['assignedMaintainerUid'] == 'M1'

    def test_reassign_is_admin_only(self, item_service, store_with_maintainer):
        item_id = make_item(store_with_maintainer)
        with pytest.raises(PreconditionError) as exc:
            item_service.reassign_item('lost', item_id, 'M1', 'maintainer')
        assert exc.value.code == 'FORBIDDEN_ROLE'

    @pytest.mark.parametrize('status', [ItemStatus.RETURNED, ItemStatus.HANDED_OVER])
    def test_closed_items_keep_assignment(self, item_service, store, status):
        item_id = make_item(store, status=status)
        with pytest.raises(PreconditionError) as exc:
            item_service.reassign_item('lost', item_id, 'A1', 'admin')
        assert exc.value.code == 'ITEM_CLOSED'
        assert store.get_item(ItemType.LOST, item_id).assignment is None

    def test_reassign_falls_back_to_central(self, item_service, store):
        item_id = make_item(store, location='Nowhere', category='Misc')
        assert item_service.reassign_item('lost', item_id, 'A1', 'admin').assigned_maintainer_uid == CENTRAL_UID


def _at(day):
    return datetime(2026, 3, day, tzinfo=timezone.utc)


class TestListItems:
    @pytest.fixture
    def reports(self, store):
        return {
            'old_lost': make_item(store, title='Scarf', created_at=_at(1)),
            'found': make_item(store, ItemType.FOUND, title='Umbrella', created_at=_at(3)),
            'new_lost': make_item(store, title='Laptop', created_at=_at(5), status=ItemStatus.RETURNED),
        }

    def test_merges_both_types_newest_first(self, item_service, reports):
        items = item_service.list_items()
        assert [i.title for i in items] == ['Laptop', 'Umbrella', 'Scarf']
        assert [i.item_type for i in items] == [ItemType.LOST, ItemType.FOUND, ItemType.LOST]

    def test_type_filter(self, item_service, reports):
        assert [i.title for i in item_service.list_items('lost')] == ['Laptop', 'Scarf']
        assert [i.title for i in item_service.list_items('found')] == ['Umbrella']

    def test_status_filter(self, item_service, reports):
        assert [i.title for i in item_service.list_items(status='open')] == ['Umbrella', 'Scarf']
        assert [i.title for i in item_service.list_items('lost', ' Returned ')] == ['Laptop']

    def test_invalid_filters(self, item_service):
        with pytest.raises(ValidationError) as exc:
            item_service.list_items(status='lost-forever')
        assert exc.value.code == 'INVALID_ITEM_STATUS'
        with pytest.raises(ValidationError) as exc:
            item_service.list_items('stolen')
        assert exc.value.code == 'INVALID_ITEM_TYPE'

    def test_malformed_reports_are_skipped(self, item_service, store, reports):
        store.item_doc(ItemType.LOST, reports['old_lost'])['status'] = 'misplaced'
        assert [i.title for i in item_service.list_items('lost')] == ['Laptop']
