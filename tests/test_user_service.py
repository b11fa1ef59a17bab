import pytest

from lostfound.errors import PreconditionError, ValidationError
from lostfound.models import Role
from lostfound.services.assignment_service import resolve_assignee
from lostfound.services.user_service import (
    get_user_profile, list_users, set_user_disabled, update_maintainer_profile,
)


class TestMaintainerProfile:
    def test_promote_and_normalize(self, store):
        profile = update_maintainer_profile(
            store, 'A1', 'admin', 'T1',
            locations=['Main  Library', 'main library', ''],
            categories=['Wallets & Bags'],
            collection_point=' Block C ',
            office_hours='8:00 AM – 3:00 PM',
        )
        assert profile.role is Role.MAINTAINER
        assert profile.locations == ['main library']
        assert profile.categories == ['wallets  bags']
        assert profile.collection_point == 'Block C'

    def test_promoted_maintainer_receives_reports(self, store):
        update_maintainer_profile(store, 'A1', 'admin', 'T1', locations=['Science Lab'])
        assert resolve_assignee(store, 'science lab', 'Books').assigned_maintainer_uid == 'T1'

    def test_unspecified_fields_are_left_alone(self, store_with_maintainer):
        profile = update_maintainer_profile(store_with_maintainer, 'A1', 'admin', 'M1', categories=['keys'])
        assert profile.locations == ['library']
        assert profile.categories == ['keys']

    def test_admin_only(self, store):
        with pytest.raises(PreconditionError) as exc:
            update_maintainer_profile(store, 'S1', 'student', 'T1', locations=['gym'])
        assert exc.value.code == 'FORBIDDEN_ROLE'

    def test_admins_stay_admins(self, store):
        store.add_user('A2', role='admin')
        with pytest.raises(PreconditionError) as exc:
            update_maintainer_profile(store, 'A1', 'admin', 'A2', locations=['gym'])
        assert exc.value.code == 'ROLE_CONFLICT'

    def test_unknown_user(self, store):
        with pytest.raises(ValidationError) as exc:
            get_user_profile(store, 'nobody')
        assert exc.value.status_code == 404


class TestDisableUser:
    def test_disable_and_enable(self, store):
        profile = set_user_disabled(store, 'A1', 'admin', 'S1', True, reason=' lost card abuse ')
        assert profile.disabled is True
        assert profile.disabled_reason == 'lost card abuse'

        profile = set_user_disabled(store, 'A1', 'admin', 'S1', False)
        assert profile.disabled is False
        assert profile.disabled_reason == ''

    def test_cannot_disable_self(self, store):
        with pytest.raises(PreconditionError) as exc:
            set_user_disabled(store, 'A1', 'admin', 'A1', True)
        assert exc.value.code == 'SELF_DISABLE'

    def test_disabled_admin_cannot_act(self, store):
        store.users['A1']['disabled'] = True
        with pytest.raises(PreconditionError) as exc:
            set_user_disabled(store, 'A1', 'admin', 'S1', True)
        assert exc.value.code == 'ACCOUNT_DISABLED'


class TestListUsers:
    def test_sorted_by_role_then_name(self, store_with_maintainer):
        store_with_maintainer.add_user('S2', role='student', name='alex Student')
        users = list_users(store_with_maintainer, 'A1', 'admin')
        assert [u.uid for u in users] == ['A1', 'M1', 'M2', 'S2', 'S1', 'T1']

    def test_admin_only(self, store):
        with pytest.raises(PreconditionError) as exc:
            list_users(store, 'T1', 'teacher')
        assert exc.value.code == 'FORBIDDEN_ROLE'
