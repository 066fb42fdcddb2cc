import pytest
from django.core.management import call_command

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.roles_api import catalog
from apps.roles_api.factories import RoleFactory, PermissionFactory
from apps.roles_api.models import Form, Permission, Role, RoleFormPermission
from apps.roles_api.resolver import AuthorizationResolver
from apps.utils.exceptions import NotFoundError


@pytest.mark.django_db
class TestPermissionTemplates:

    def test_forms_are_seeded(self):
        codes = list(catalog.list_forms().values_list('code', flat=True))
        assert codes == ['CITAS', 'USERS', 'ROLES', 'SEDES', 'TIPOS_CITA', 'HORAS_DISPONIBLES', 'PERMISSIONS']

    def test_description_is_derived(self):
        permission, created = catalog.get_or_create_permission(can_read=True, can_update=True)
        assert created
        assert permission.description == 'Leer, Actualizar'

    def test_identical_bundle_returns_existing(self):
        first, _ = catalog.get_or_create_permission(can_read=True, description='Solo lectura')
        second, created = catalog.get_or_create_permission(can_read=True, description='Otra')

        assert not created
        assert first.pk == second.pk
        assert Permission.objects.filter(can_read=True, can_create=False,
                                         can_update=False, can_delete=False).count() == 1

    def test_empty_bundle_description(self):
        permission, _ = catalog.get_or_create_permission()
        assert str(permission) == 'Sin acceso'


@pytest.mark.django_db
class TestAssignPermission:

    def test_assign_replaces_previous(self):
        role = RoleFactory()
        form = Form.objects.get(code='CITAS')
        read_only = PermissionFactory(can_read=True)
        full = PermissionFactory(can_read=True, can_create=True, can_update=True, can_delete=True)

        catalog.assign_permission(role.pk, form.pk, read_only.pk)
        catalog.assign_permission(role.pk, form.pk, full.pk)

        assert RoleFormPermission.objects.filter(role=role, form=form).count() == 1
        assert catalog.get_assignment(role.pk, form.pk).permission == full

    def test_assign_is_idempotent(self):
        role = RoleFactory()
        form = Form.objects.get(code='SEDES')
        permission = PermissionFactory(can_read=True)

        first = catalog.assign_permission(role.pk, form.pk, permission.pk)
        second = catalog.assign_permission(role.pk, form.pk, permission.pk)

        assert first.pk == second.pk
        assert RoleFormPermission.objects.filter(role=role).count() == 1

    def test_assign_null_means_no_access(self):
        user = UserFactory()
        role = RoleFactory()
        user.user_roles.create(role=role)
        form = Form.objects.get(code='CITAS')
        catalog.assign_permission(role.pk, form.pk, PermissionFactory(can_read=True).pk)

        assignment = catalog.assign_permission(role.pk, form.pk, None)

        assert assignment.permission is None
        assert AuthorizationResolver.authorize(user, 'CITAS', 'read') is False

    def test_assign_writes_audit_log(self):
        actor = UserFactory()
        role = RoleFactory()
        form = Form.objects.get(code='ROLES')
        catalog.assign_permission(role.pk, form.pk, PermissionFactory(can_read=True).pk, actor=actor)

        log = AuditLog.objects.get(action='PERMISSION_GRANT')
        assert log.user == actor
        assert log.extra_data['role'] == role.code
        assert log.extra_data['form'] == 'ROLES'

    @pytest.mark.parametrize('missing', ['role', 'form', 'permission'])
    def test_missing_reference_is_not_found(self, missing):
        role = RoleFactory()
        form = Form.objects.get(code='CITAS')
        permission = PermissionFactory(can_read=True)
        args = {'role': role.pk, 'form': form.pk, 'permission': permission.pk}
        args[missing] = 999999

        with pytest.raises(NotFoundError):
            catalog.assign_permission(args['role'], args['form'], args['permission'])
        assert not RoleFormPermission.objects.exists()

    @pytest.mark.parametrize('inactive', ['role', 'form', 'permission'])
    def test_inactive_reference_is_not_found(self, inactive):
        role = RoleFactory()
        form = Form.objects.get(code='CITAS')
        permission = PermissionFactory(can_read=True)
        target = {'role': role, 'form': form, 'permission': permission}[inactive]
        target.is_active = False
        target.save()

        with pytest.raises(NotFoundError):
            catalog.assign_permission(role.pk, form.pk, permission.pk)

    def test_remove_permission(self):
        role = RoleFactory()
        form = Form.objects.get(code='CITAS')
        catalog.assign_permission(role.pk, form.pk, PermissionFactory(can_read=True).pk)

        assert catalog.remove_permission(role.pk, form.pk) is True
        assert catalog.get_assignment(role.pk, form.pk) is None
        assert catalog.remove_permission(role.pk, form.pk) is False


@pytest.mark.django_db
def test_role_summary_lists_every_form():
    role = RoleFactory()
    form = Form.objects.get(code='CITAS')
    catalog.assign_permission(role.pk, form.pk, PermissionFactory(can_read=True, can_update=True).pk)

    summary = catalog.role_summary(role)

    assert summary['role_code'] == role.code
    assert len(summary['form_permissions']) == Form.objects.filter(is_active=True).count()
    citas = next(f for f in summary['form_permissions'] if f['form_code'] == 'CITAS')
    assert citas['has_permission'] is True
    assert citas['assigned_permission']['can_update'] is True
    users = next(f for f in summary['form_permissions'] if f['form_code'] == 'USERS')
    assert users['has_permission'] is False
    assert users['assigned_permission'] is None


@pytest.mark.django_db
def test_seed_catalog_command_creates_baseline_roles():
    call_command('seed_catalog')
    call_command('seed_catalog')

    admin = Role.objects.get(code='ADMIN')
    operator = Role.objects.get(code='OPERATOR')
    assert admin.form_permissions.count() == Form.objects.count()

    user = UserFactory()
    user.user_roles.create(role=operator)
    assert AuthorizationResolver.authorize(user, 'CITAS', 'update') is True
    assert AuthorizationResolver.authorize(user, 'CITAS', 'create') is False
    assert AuthorizationResolver.authorize(user, 'SEDES', 'read') is True
    assert AuthorizationResolver.authorize(user, 'SEDES', 'update') is False
