import logging

from django.contrib.auth import get_user_model
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.audit_api.mixins import AuditLoggingMixin
from apps.roles_api.permission_config import USERS, PERMISSIONS
from apps.roles_api.permissions import FormPermission, form_permission_for
from apps.roles_api.resolver import AuthorizationResolver
from apps.roles_api.serializers import RoleSerializer
from apps.utils.exceptions import ValidationError
from . import tabs
from .serializers import (
    UserListSerializer, EmployeeUserSerializer, UserTabsSerializer, UpdateUserTabsSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


class MeView(APIView):
    """Actor autenticado con sus permisos efectivos, resueltos en cada llamada."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        roles = AuthorizationResolver.active_roles(user).order_by('id')
        return Response({
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'full_name': user.full_name,
            'is_active': user.is_active,
            'roles': RoleSerializer(roles, many=True).data,
            'allowed_tabs': list(user.allowed_tabs or []),
            'permissions': AuthorizationResolver.resolve_all(user),
            'visible_tabs': sorted(AuthorizationResolver.resolve_visible_tabs(user)),
        })


class UserViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    """Empleados de la consola (formulario USERS)."""
    queryset = User.objects.all().order_by('id')
    permission_classes = [IsAuthenticated, FormPermission]
    form_code = USERS
    audit_source = 'USERS'
    action_operations = {'deactivate': 'update'}
    filterset_fields = ['is_active']
    search_fields = ['username', 'email', 'full_name']
    ordering_fields = ['id', 'username', 'date_joined']

    def get_serializer_class(self):
        if self.action in ['create', 'update', 'partial_update']:
            return EmployeeUserSerializer
        return UserListSerializer

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        user = self.get_object()
        if user.is_active:
            user.is_active = False
            user.save(update_fields=['is_active'])
            self.log_action('deactivate', user)
        return Response(UserListSerializer(user).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        if instance.pk == request.user.pk:
            raise ValidationError("No puede eliminar su propio usuario.")
        self.perform_destroy(instance)
        logger.info("Usuario %s eliminado por %s", instance.username, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserTabsView(APIView):
    """Pestañas permitidas de todos los empleados; PUT reemplaza las de uno."""
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]

    def get(self, request):
        users = User.objects.all().order_by('id')
        return Response(UserTabsSerializer(users, many=True).data)

    @extend_schema(request=UpdateUserTabsSerializer)
    def put(self, request):
        serializer = UpdateUserTabsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allowed = tabs.set_allowed_tabs(
            serializer.validated_data['user_id'],
            serializer.validated_data['allowed_tabs'],
            actor=request.user,
        )
        return Response({
            'success': True,
            'message': 'Pestañas actualizadas correctamente',
            'allowed_tabs': allowed,
        })


class UserTabsDetailView(APIView):
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]

    def get(self, request, user_id):
        return Response({
            'user_id': user_id,
            'allowed_tabs': tabs.get_allowed_tabs(user_id),
        })


class AvailableTabsView(APIView):
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]

    def get(self, request):
        return Response(tabs.available_tabs())
