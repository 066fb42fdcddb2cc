import pytest
from rest_framework.test import APIRequestFactory

from apps.auth_api.factories import UserFactory
from apps.roles_api.permissions import FormPermission, form_permission_for


class DummyView:
    form_code = 'CITAS'
    action = None
    action_operations = {}


@pytest.fixture
def factory():
    return APIRequestFactory()


@pytest.mark.django_db
def test_safe_method_requires_read(factory, grant):
    user = UserFactory()
    grant(user, 'CITAS', read=True)
    request = factory.get("/")
    request.user = user
    assert FormPermission().has_permission(request, DummyView())


@pytest.mark.django_db
def test_post_requires_create(factory, grant):
    user = UserFactory()
    grant(user, 'CITAS', read=True, update=True)
    request = factory.post("/")
    request.user = user
    assert not FormPermission().has_permission(request, DummyView())


@pytest.mark.django_db
def test_delete_requires_delete(factory, grant):
    user = UserFactory()
    grant(user, 'CITAS', read=True, update=True)
    request = factory.delete("/")
    request.user = user
    assert not FormPermission().has_permission(request, DummyView())


@pytest.mark.django_db
def test_action_operation_override(factory, grant):
    user = UserFactory()
    grant(user, 'CITAS', read=True, update=True)
    view = DummyView()
    view.action = 'deactivate'
    view.action_operations = {'deactivate': 'update'}
    request = factory.post("/")
    request.user = user
    assert FormPermission().has_permission(request, view)


@pytest.mark.django_db
def test_inactive_user_denied(factory, grant):
    user = UserFactory(is_active=False)
    grant(user, 'CITAS', read=True)
    request = factory.get("/")
    request.user = user
    assert not FormPermission().has_permission(request, DummyView())


def test_anonymous_denied(factory):
    request = factory.get("/")
    request.user = None
    assert not FormPermission().has_permission(request, DummyView())


@pytest.mark.django_db
def test_form_permission_for_dynamic_class(factory, grant):
    user = UserFactory()
    grant(user, 'PERMISSIONS', read=True)
    request = factory.get("/")
    request.user = user

    DynamicPerm = form_permission_for('PERMISSIONS')
    assert DynamicPerm.__name__ == 'FormPermissionForPERMISSIONS'
    assert DynamicPerm().has_permission(request, object())
    assert not form_permission_for('ROLES')().has_permission(request, object())
