import pytest
from rest_framework.test import APIClient
from django.urls import reverse

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.roles_api.factories import RoleFactory, PermissionFactory
from apps.roles_api.models import Form, Role, RoleFormPermission


@pytest.fixture
def roles_admin(grant):
    user = UserFactory()
    grant(user, 'ROLES', read=True, create=True, update=True, delete=True)
    return user

@pytest.fixture
def roles_reader(grant):
    user = UserFactory()
    grant(user, 'ROLES', read=True)
    return user

def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
def test_list_roles(roles_reader):
    RoleFactory(code='OPERATOR')

    response = client_for(roles_reader).get(reverse('role-list'))

    assert response.status_code == 200
    codes = [r['code'] for r in response.data['results']]
    assert 'OPERATOR' in codes

@pytest.mark.django_db
def test_list_roles_without_permission(authenticated_user):
    _, client = authenticated_user
    response = client.get(reverse('role-list'))
    assert response.status_code == 403

@pytest.mark.django_db
def test_roles_unauthenticated(api_client):
    response = api_client.get(reverse('role-list'))
    assert response.status_code == 401

@pytest.mark.django_db
def test_create_role(roles_admin):
    data = {'code': 'supervisor', 'name': 'Supervisor', 'description': 'Supervisa la sede'}
    response = client_for(roles_admin).post(reverse('role-list'), data, format='json')

    assert response.status_code == 201
    role = Role.objects.get(code='SUPERVISOR')
    assert role.is_active
    assert AuditLog.objects.filter(user=roles_admin, action='CREATE', source='ROLES').exists()

@pytest.mark.django_db
def test_create_role_needs_create_capability(roles_reader):
    response = client_for(roles_reader).post(reverse('role-list'), {'code': 'X', 'name': 'X'}, format='json')
    assert response.status_code == 403
    assert not Role.objects.filter(code='X').exists()

@pytest.mark.django_db
def test_deactivate_is_not_delete(grant):
    user = UserFactory()
    grant(user, 'ROLES', read=True, update=True)
    role = RoleFactory()
    client = client_for(user)

    response = client.post(reverse('role-deactivate', kwargs={'pk': role.pk}))
    assert response.status_code == 200
    role.refresh_from_db()
    assert role.is_active is False

    response = client.delete(reverse('role-detail', kwargs={'pk': role.pk}))
    assert response.status_code == 403
    assert Role.objects.filter(pk=role.pk).exists()

@pytest.mark.django_db
def test_permanent_delete(roles_admin):
    role = RoleFactory()
    response = client_for(roles_admin).delete(reverse('role-detail', kwargs={'pk': role.pk}))
    assert response.status_code == 204
    assert not Role.objects.filter(pk=role.pk).exists()

@pytest.mark.django_db
def test_role_by_code(roles_reader):
    role = RoleFactory(code='OPERATOR')
    client = client_for(roles_reader)

    response = client.get(reverse('role-by-code', kwargs={'code': 'operator'}))
    assert response.status_code == 200
    assert response.data['id'] == role.pk

    response = client.get(reverse('role-by-code', kwargs={'code': 'NOPE'}))
    assert response.status_code == 404
    assert response.data['code'] == 'not_found'

@pytest.mark.django_db
def test_roles_by_user(roles_reader):
    employee = UserFactory()
    role = RoleFactory()
    employee.user_roles.create(role=role)

    response = client_for(roles_reader).get(reverse('role-by-user', kwargs={'user_id': employee.pk}))

    assert response.status_code == 200
    assert [r['id'] for r in response.data] == [role.pk]

@pytest.mark.django_db
def test_role_permissions_summary(roles_reader):
    role = RoleFactory()
    response = client_for(roles_reader).get(reverse('role-permissions-summary', kwargs={'pk': role.pk}))
    assert response.status_code == 200
    assert all(f['has_permission'] is False for f in response.data['form_permissions'])


@pytest.mark.django_db
class TestPermissionManagementAPI:

    def test_list_forms(self, permissions_admin):
        response = client_for(permissions_admin).get(reverse('form-list'))
        assert response.status_code == 200
        assert len(response.data) == 7

    def test_create_permission_template(self, permissions_admin):
        client = client_for(permissions_admin)
        data = {'can_read': True, 'can_update': True}

        response = client.post(reverse('permission-list'), data, format='json')
        assert response.status_code == 201
        assert response.data['description'] == 'Leer, Actualizar'

        response = client.post(reverse('permission-list'), data, format='json')
        assert response.status_code == 200

    def test_assign_and_remove(self, permissions_admin):
        client = client_for(permissions_admin)
        role = RoleFactory()
        form = Form.objects.get(code='CITAS')
        permission = PermissionFactory(can_read=True)

        response = client.post(reverse('assignment-list'), {
            'role_id': role.pk, 'form_id': form.pk, 'permission_id': permission.pk
        }, format='json')
        assert response.status_code == 200
        assert response.data['permission']['id'] == permission.pk

        response = client.get(reverse('assignment-list'), {'role': role.pk})
        assert response.data['count'] == 1

        response = client.post(reverse('assignment-remove'), {
            'role_id': role.pk, 'form_id': form.pk
        }, format='json')
        assert response.status_code == 204
        assert not RoleFormPermission.objects.filter(role=role).exists()

    def test_assign_unknown_role(self, permissions_admin):
        response = client_for(permissions_admin).post(reverse('assignment-list'), {
            'role_id': 424242, 'form_id': Form.objects.get(code='CITAS').pk, 'permission_id': None
        }, format='json')
        assert response.status_code == 404

    def test_roles_summary(self, permissions_admin):
        RoleFactory()
        response = client_for(permissions_admin).get(reverse('roles-summary'))
        assert response.status_code == 200
        assert len(response.data) == Role.objects.filter(is_active=True).count()

    def test_read_only_permission_cannot_assign(self, grant):
        user = UserFactory()
        grant(user, 'PERMISSIONS', read=True)
        role = RoleFactory()

        response = client_for(user).post(reverse('assignment-list'), {
            'role_id': role.pk, 'form_id': Form.objects.get(code='CITAS').pk, 'permission_id': None
        }, format='json')

        assert response.status_code == 403
        assert not RoleFormPermission.objects.filter(role=role).exists()
