"""
Catálogo de formularios y plantillas de permiso, y perfil de permisos por rol.
"""

import logging

from django.db import transaction

from .models import Form, Permission, Role, RoleFormPermission
from .permission_config import FORMS, BASELINE_PERMISSIONS, BASELINE_ROLES
from apps.audit_api.utils import create_audit_log
from apps.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def list_forms():
    return Form.objects.filter(is_active=True).order_by('id')


def list_permissions():
    return Permission.objects.filter(is_active=True).order_by('id')


def get_or_create_permission(can_read=False, can_create=False, can_update=False,
                             can_delete=False, description=''):
    """Una plantilla por combinación de banderas; repetir la combinación devuelve la existente."""
    permission, created = Permission.objects.get_or_create(
        can_read=can_read,
        can_create=can_create,
        can_update=can_update,
        can_delete=can_delete,
        defaults={'description': description},
    )
    if created and not permission.description:
        permission.description = permission.build_description()
        permission.save(update_fields=['description'])
    return permission, created


def _active_role(role_id):
    try:
        return Role.objects.get(pk=role_id, is_active=True)
    except (Role.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El rol {role_id} no existe o está inactivo.")


def _active_form(form_id):
    try:
        return Form.objects.get(pk=form_id, is_active=True)
    except (Form.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El formulario {form_id} no existe o está inactivo.")


def _active_permission(permission_id):
    try:
        return Permission.objects.get(pk=permission_id, is_active=True)
    except (Permission.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El permiso {permission_id} no existe o está inactivo.")


def get_assignment(role_id, form_id):
    return RoleFormPermission.objects.select_related('permission').filter(
        role_id=role_id, form_id=form_id
    ).first()


def assign_permission(role_id, form_id, permission_id, actor=None):
    """
    Reemplaza la asignación (rol, formulario). permission_id=None deja la
    asignación explícita "sin acceso". Repetir la misma llamada no cambia nada.
    """
    role = _active_role(role_id)
    form = _active_form(form_id)
    permission = _active_permission(permission_id) if permission_id is not None else None

    with transaction.atomic():
        assignment, created = RoleFormPermission.objects.update_or_create(
            role=role, form=form, defaults={'permission': permission}
        )
        create_audit_log(
            user=actor,
            action='PERMISSION_GRANT' if permission else 'PERMISSION_REVOKE',
            description=f"Rol {role.code} / {form.code}: {permission or 'sin acceso'}",
            content_object=assignment,
            source='ROLES',
            extra_data={
                'role': role.code,
                'form': form.code,
                'permission_id': permission.pk if permission else None,
                'created': created,
            }
        )
    logger.info("Permiso asignado: rol=%s form=%s permiso=%s", role.code, form.code, permission_id)
    return assignment


def remove_permission(role_id, form_id, actor=None):
    role = _active_role(role_id)
    form = _active_form(form_id)

    with transaction.atomic():
        deleted, _ = RoleFormPermission.objects.filter(role=role, form=form).delete()
        if deleted:
            create_audit_log(
                user=actor,
                action='PERMISSION_REVOKE',
                description=f"Asignación eliminada: rol {role.code} / {form.code}",
                content_object=role,
                source='ROLES',
                extra_data={'role': role.code, 'form': form.code}
            )
    return bool(deleted)


def role_summary(role):
    """Todos los formularios del catálogo con la plantilla asignada al rol (o ninguna)."""
    assignments = {
        a.form_id: a for a in role.form_permissions.select_related('permission')
    }
    forms = []
    for form in list_forms():
        assignment = assignments.get(form.pk)
        permission = assignment.permission if assignment else None
        forms.append({
            'form_id': form.pk,
            'form_code': form.code,
            'form_name': form.display_name,
            'has_permission': permission is not None,
            'assigned_permission': {
                'id': permission.pk,
                'description': str(permission),
                **permission.as_flags(),
            } if permission else None,
        })
    return {
        'role_id': role.pk,
        'role_code': role.code,
        'role_name': role.name,
        'form_permissions': forms,
    }


def sync_catalog():
    """Crea formularios, plantillas base y roles ADMIN / OPERATOR si faltan."""
    for code, display_name in FORMS:
        Form.objects.update_or_create(code=code, defaults={'display_name': display_name, 'is_active': True})

    templates = {}
    for flags in BASELINE_PERMISSIONS:
        templates[flags], _ = get_or_create_permission(*flags)

    forms = {form.code: form for form in Form.objects.all()}
    for code, definition in BASELINE_ROLES.items():
        role, _ = Role.objects.get_or_create(code=code, defaults={'name': definition['name']})
        for form_code, flags in definition['forms'].items():
            permission = templates.get(flags) or get_or_create_permission(*flags)[0]
            RoleFormPermission.objects.get_or_create(
                role=role, form=forms[form_code], defaults={'permission': permission}
            )
    return Role.objects.filter(code__in=BASELINE_ROLES.keys())
