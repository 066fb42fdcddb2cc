import itertools

import pytest
from django.conf import settings
from rest_framework.test import APIClient

from apps.auth_api.factories import UserFactory
from apps.roles_api.catalog import get_or_create_permission
from apps.roles_api.models import Form, Role, UserRole, RoleFormPermission


@pytest.fixture(autouse=True)
def set_urlconf():
    """Se asegura de que todas las pruebas usen el urls.py de backend."""
    settings.ROOT_URLCONF = 'backend.urls'


@pytest.fixture
def api_client():
    """Retorna una instancia de APIClient para pruebas."""
    return APIClient()


@pytest.fixture
def grant(db):
    """
    grant(user, 'CITAS', read=True, update=True) crea un rol con esa
    plantilla para el formulario y se lo asigna al usuario.
    """
    counter = itertools.count()

    def _grant(user, form_code, read=False, create=False, update=False, delete=False, role=None):
        if role is None:
            n = next(counter)
            role = Role.objects.create(code=f'TEST_{form_code}_{n}', name=f'Prueba {form_code} {n}')
        permission, _ = get_or_create_permission(read, create, update, delete)
        RoleFormPermission.objects.update_or_create(
            role=role,
            form=Form.objects.get(code=form_code),
            defaults={'permission': permission},
        )
        UserRole.objects.get_or_create(user=user, role=role)
        return role

    return _grant


@pytest.fixture
def authenticated_user(api_client, db):
    """Usuario autenticado sin ningún rol."""
    user = UserFactory()
    api_client.force_authenticate(user=user)
    return user, api_client


@pytest.fixture
def operator(grant):
    """Operador de citas: leer y actualizar CITAS."""
    user = UserFactory()
    grant(user, 'CITAS', read=True, update=True)
    return user


@pytest.fixture
def citas_admin(grant):
    """Control total sobre CITAS."""
    user = UserFactory()
    grant(user, 'CITAS', read=True, create=True, update=True, delete=True)
    return user


@pytest.fixture
def permissions_admin(grant):
    """Gestión de permisos y pestañas."""
    user = UserFactory()
    grant(user, 'PERMISSIONS', read=True, create=True, update=True, delete=True)
    return user
