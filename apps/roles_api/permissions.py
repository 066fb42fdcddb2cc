from rest_framework.permissions import BasePermission, SAFE_METHODS

from .resolver import AuthorizationResolver

METHOD_OPERATIONS = {
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


class FormPermission(BasePermission):
    """
    Verifica la capacidad CRUD del usuario sobre el formulario de la vista.

    La vista declara ``form_code`` y, opcionalmente, ``action_operations``
    para acciones personalizadas (p. ej. {'deactivate': 'update'}).
    """
    form_code = None
    message = 'No tiene permisos sobre este formulario.'

    def get_operation(self, request, view):
        overrides = getattr(view, 'action_operations', {}) or {}
        action = getattr(view, 'action', None)
        if action in overrides:
            return overrides[action]
        if request.method in SAFE_METHODS:
            return 'read'
        return METHOD_OPERATIONS.get(request.method)

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        form_code = self.form_code or getattr(view, 'form_code', None)
        operation = self.get_operation(request, view)
        if not form_code or not operation:
            return False
        return AuthorizationResolver.authorize(request.user, form_code, operation)


def form_permission_for(form_code):
    """
    Genera dinámicamente un permiso DRF para el formulario indicado.
    """
    return type(
        f'FormPermissionFor{form_code}',
        (FormPermission,),
        {'form_code': form_code}
    )
