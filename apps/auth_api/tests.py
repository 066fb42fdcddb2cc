import pytest
from rest_framework.test import APIClient
from django.urls import reverse

from apps.audit_api.models import AuditLog
from apps.roles_api.factories import RoleFactory
from apps.roles_api.models import UserRole
from apps.utils.exceptions import ValidationError, NotFoundError
from . import tabs
from .factories import UserFactory
from .models import User


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_obtain_token():
    user = UserFactory(username='operador1')
    client = APIClient()
    response = client.post(reverse('token_obtain_pair'), {'username': 'operador1', 'password': 'testpassword'})
    assert response.status_code == 200
    assert 'access' in response.data
    assert 'refresh' in response.data

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
    response = client.get(reverse('me'))
    assert response.status_code == 200
    assert response.data['id'] == user.pk


@pytest.mark.django_db
def test_me_without_roles_is_no_access(authenticated_user):
    user, client = authenticated_user
    response = client.get(reverse('me'))

    assert response.status_code == 200
    assert response.data['roles'] == []
    assert response.data['visible_tabs'] == []
    assert not any(
        any(flags.values()) for flags in response.data['permissions'].values()
    )


@pytest.mark.django_db
def test_me_reflects_permission_changes_immediately(grant):
    user = UserFactory(allowed_tabs=['roles'])
    role = grant(user, 'CITAS', read=True)
    client = client_for(user)

    response = client.get(reverse('me'))
    assert response.data['visible_tabs'] == ['citas', 'roles']
    assert response.data['permissions']['CITAS']['can_update'] is False

    grant(user, 'CITAS', read=True, update=True, role=role)
    response = client.get(reverse('me'))
    assert response.data['permissions']['CITAS']['can_update'] is True


@pytest.mark.django_db
def test_me_unauthenticated(api_client):
    assert api_client.get(reverse('me')).status_code == 401


@pytest.mark.django_db
class TestTabAccess:

    def test_set_allowed_tabs_dedupes(self):
        user = UserFactory()
        assert tabs.set_allowed_tabs(user.pk, ['citas', 'sedes', 'citas']) == ['citas', 'sedes']
        user.refresh_from_db()
        assert user.allowed_tabs == ['citas', 'sedes']

    def test_unknown_tab_rejected(self):
        user = UserFactory(allowed_tabs=['citas'])
        with pytest.raises(ValidationError):
            tabs.set_allowed_tabs(user.pk, ['citas', 'facturacion'])
        user.refresh_from_db()
        assert user.allowed_tabs == ['citas']

    @pytest.mark.parametrize('bad', [['citas', ['sedes']], ['citas', {'id': 'sedes'}], [None]])
    def test_non_text_tab_rejected(self, bad):
        user = UserFactory(allowed_tabs=['citas'])
        with pytest.raises(ValidationError):
            tabs.set_allowed_tabs(user.pk, bad)
        user.refresh_from_db()
        assert user.allowed_tabs == ['citas']

    def test_unknown_user(self):
        with pytest.raises(NotFoundError):
            tabs.get_allowed_tabs(987654)

    def test_change_is_audited(self):
        actor = UserFactory()
        user = UserFactory()
        tabs.set_allowed_tabs(user.pk, ['roles'], actor=actor)
        tabs.set_allowed_tabs(user.pk, ['roles'], actor=actor)

        logs = AuditLog.objects.filter(action='TABS_UPDATE')
        assert logs.count() == 1
        assert logs.get().extra_data == {'before': [], 'after': ['roles']}

    def test_available_tabs_have_backing_forms(self):
        available = {tab['id']: tab['form_code'] for tab in tabs.available_tabs()}
        assert available['citas'] == 'CITAS'
        assert available['permisos'] == 'PERMISSIONS'


@pytest.mark.django_db
class TestTabAPI:

    def test_list_user_tabs(self, permissions_admin):
        UserFactory(allowed_tabs=['sedes'])
        response = client_for(permissions_admin).get(reverse('user-tabs'))
        assert response.status_code == 200
        assert ['sedes'] in [u['allowed_tabs'] for u in response.data]

    def test_update_user_tabs(self, permissions_admin):
        user = UserFactory()
        response = client_for(permissions_admin).put(
            reverse('user-tabs'), {'user_id': user.pk, 'allowed_tabs': ['citas']}, format='json'
        )
        assert response.status_code == 200
        assert response.data['success'] is True
        user.refresh_from_db()
        assert user.allowed_tabs == ['citas']

    def test_update_user_tabs_invalid(self, permissions_admin):
        user = UserFactory()
        response = client_for(permissions_admin).put(
            reverse('user-tabs'), {'user_id': user.pk, 'allowed_tabs': ['inventario']}, format='json'
        )
        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'

    def test_user_tabs_detail(self, permissions_admin):
        user = UserFactory(allowed_tabs=['roles'])
        response = client_for(permissions_admin).get(reverse('user-tabs-detail', kwargs={'user_id': user.pk}))
        assert response.data == {'user_id': user.pk, 'allowed_tabs': ['roles']}

    def test_available_tabs(self, permissions_admin):
        response = client_for(permissions_admin).get(reverse('available-tabs'))
        assert len(response.data) == 7

    def test_tabs_require_permissions_form(self, authenticated_user):
        _, client = authenticated_user
        assert client.get(reverse('user-tabs')).status_code == 403


@pytest.mark.django_db
class TestEmployeeAPI:

    @pytest.fixture
    def users_admin(self, grant):
        user = UserFactory()
        grant(user, 'USERS', read=True, create=True, update=True, delete=True)
        return user

    def test_create_employee_with_roles(self, users_admin):
        role = RoleFactory()
        data = {
            'username': 'nuevo.operador',
            'email': 'nuevo@portal.test',
            'full_name': 'Nuevo Operador',
            'password': 'clave-segura-123',
            'role_ids': [role.pk],
            'allowed_tabs': ['citas'],
        }
        response = client_for(users_admin).post(reverse('user-list'), data, format='json')

        assert response.status_code == 201
        user = User.objects.get(username='nuevo.operador')
        assert user.check_password('clave-segura-123')
        assert list(user.user_roles.values_list('role_id', flat=True)) == [role.pk]
        assert response.data['roles'][0]['code'] == role.code

    def test_create_employee_requires_password(self, users_admin):
        response = client_for(users_admin).post(reverse('user-list'), {
            'username': 'sinclave', 'email': 'sinclave@portal.test'
        }, format='json')
        assert response.status_code == 400

    def test_update_replaces_roles(self, users_admin):
        old_role = RoleFactory()
        new_role = RoleFactory()
        employee = UserFactory(roles=[old_role])

        response = client_for(users_admin).patch(
            reverse('user-detail', kwargs={'pk': employee.pk}), {'role_ids': [new_role.pk]}, format='json'
        )

        assert response.status_code == 200
        assert list(UserRole.objects.filter(user=employee).values_list('role_id', flat=True)) == [new_role.pk]

    def test_unknown_role_id(self, users_admin):
        response = client_for(users_admin).post(reverse('user-list'), {
            'username': 'x1', 'email': 'x1@portal.test', 'password': 'clave-segura-123', 'role_ids': [99999]
        }, format='json')
        assert response.status_code == 400

    def test_deactivate_then_delete(self, grant):
        updater = UserFactory()
        grant(updater, 'USERS', read=True, update=True)
        employee = UserFactory()
        client = client_for(updater)

        response = client.post(reverse('user-deactivate', kwargs={'pk': employee.pk}))
        assert response.status_code == 200
        employee.refresh_from_db()
        assert employee.is_active is False

        response = client.delete(reverse('user-detail', kwargs={'pk': employee.pk}))
        assert response.status_code == 403
        assert User.objects.filter(pk=employee.pk).exists()

    def test_cannot_delete_self(self, users_admin):
        response = client_for(users_admin).delete(reverse('user-detail', kwargs={'pk': users_admin.pk}))
        assert response.status_code == 400
