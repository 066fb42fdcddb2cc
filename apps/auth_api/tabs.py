"""
Lista de pestañas permitidas por empleado (User.allowed_tabs).

Sólo gobierna la visibilidad en la consola; las capacidades CRUD salen
siempre de los roles. La combinación de ambas fuentes vive en
apps.roles_api.resolver.
"""

import logging

from django.contrib.auth import get_user_model

from apps.audit_api.utils import create_audit_log
from apps.roles_api.permission_config import TABS
from apps.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)
User = get_user_model()


def available_tabs():
    return [
        {'id': tab_id, 'name': name, 'form_code': form_code}
        for tab_id, (name, form_code) in TABS.items()
    ]


def _get_user(user_id):
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El usuario {user_id} no existe.")


def get_allowed_tabs(user_id):
    return list(_get_user(user_id).allowed_tabs or [])


def clean_tabs(tabs):
    if tabs is None:
        return []
    if not isinstance(tabs, (list, tuple)):
        raise ValidationError("allowed_tabs debe ser una lista de identificadores de pestaña.")

    if not all(isinstance(tab, str) for tab in tabs):
        raise ValidationError("Cada pestaña debe ser un identificador de texto.")

    unknown = [tab for tab in tabs if tab not in TABS]
    if unknown:
        raise ValidationError(f"Pestañas desconocidas: {', '.join(map(str, unknown))}")

    # conserva el orden de entrada sin duplicados
    return list(dict.fromkeys(tabs))


def set_allowed_tabs(user_id, tabs, actor=None):
    """Reemplaza la lista completa de pestañas del empleado."""
    cleaned = clean_tabs(tabs)
    user = _get_user(user_id)
    previous = list(user.allowed_tabs or [])

    user.allowed_tabs = cleaned
    user.save(update_fields=['allowed_tabs'])

    if previous != cleaned:
        create_audit_log(
            user=actor,
            action='TABS_UPDATE',
            description=f"Pestañas de {user.username} actualizadas",
            content_object=user,
            source='USERS',
            extra_data={'before': previous, 'after': cleaned},
        )
        logger.info("Pestañas actualizadas para %s: %s", user.username, cleaned)
    return cleaned
