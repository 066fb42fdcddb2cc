"""
Resolución de permisos efectivos.

Dos fuentes independientes se combinan aquí y sólo aquí:

- RoleFormPermission: matriz rol -> formulario -> plantilla CRUD. El permiso
  efectivo de un actor sobre un formulario es el OR de las banderas de
  todas sus asignaciones en roles activos; una asignación ausente o nula
  aporta False.
- User.allowed_tabs: lista de pestañas por empleado. Una pestaña es visible
  si el actor puede leer el formulario que la respalda O si la pestaña está
  en su lista. La unión se conserva tal como funciona hoy en la consola
  (pendiente de aclaración de producto: ver DESIGN.md).

Nada se cachea: cada llamada consulta la base de datos para que los cambios
de permisos apliquen de inmediato.
"""

import logging

from .models import RoleFormPermission, Role
from .permission_config import FORMS, OPERATIONS, TABS
from apps.utils.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

FLAGS = ('can_read', 'can_create', 'can_update', 'can_delete')


def no_access():
    return dict.fromkeys(FLAGS, False)


def _is_active_actor(actor):
    return bool(
        actor is not None
        and getattr(actor, 'is_authenticated', False)
        and getattr(actor, 'is_active', False)
    )


class AuthorizationResolver:

    @staticmethod
    def active_roles(actor):
        if not _is_active_actor(actor):
            return Role.objects.none()
        return Role.objects.filter(user_roles_assignments__user=actor, is_active=True).distinct()

    @staticmethod
    def _assignments(actor):
        return RoleFormPermission.objects.filter(
            role__user_roles_assignments__user=actor,
            role__is_active=True,
            form__is_active=True,
            permission__isnull=False,
            permission__is_active=True,
        )

    @staticmethod
    def resolve_form_permission(actor, form_code):
        """OR de las banderas CRUD de todos los roles activos del actor para form_code."""
        result = no_access()
        if not _is_active_actor(actor):
            return result

        rows = AuthorizationResolver._assignments(actor).filter(
            form__code=form_code
        ).values_list('permission__can_read', 'permission__can_create',
                      'permission__can_update', 'permission__can_delete')

        for row in rows:
            for flag, value in zip(FLAGS, row):
                result[flag] = result[flag] or value
        return result

    @staticmethod
    def resolve_all(actor):
        """Permisos efectivos para todo el catálogo de formularios en una sola consulta."""
        result = {code: no_access() for code, _ in FORMS}
        if not _is_active_actor(actor):
            return result

        rows = AuthorizationResolver._assignments(actor).values_list(
            'form__code', 'permission__can_read', 'permission__can_create',
            'permission__can_update', 'permission__can_delete'
        )
        for form_code, *flags in rows:
            merged = result.setdefault(form_code, no_access())
            for flag, value in zip(FLAGS, flags):
                merged[flag] = merged[flag] or value
        return result

    @staticmethod
    def resolve_visible_tabs(actor):
        if not _is_active_actor(actor):
            return set()

        permissions = AuthorizationResolver.resolve_all(actor)
        allowed_tabs = set(actor.allowed_tabs or [])

        visible = set()
        for tab_id, (_name, form_code) in TABS.items():
            if permissions.get(form_code, {}).get('can_read') or tab_id in allowed_tabs:
                visible.add(tab_id)
        return visible

    @staticmethod
    def authorize(actor, form_code, operation):
        flag = OPERATIONS.get(operation)
        if flag is None:
            return False
        return AuthorizationResolver.resolve_form_permission(actor, form_code)[flag]

    @staticmethod
    def require(actor, form_code, operation):
        """Como authorize, pero lanza AuthorizationError. Llamar antes de cualquier efecto."""
        if not AuthorizationResolver.authorize(actor, form_code, operation):
            logger.warning(
                "Acceso denegado: actor=%s form=%s op=%s",
                getattr(actor, 'pk', None), form_code, operation
            )
            raise AuthorizationError(
                f"No tiene permiso de '{operation}' sobre el formulario {form_code}."
            )
