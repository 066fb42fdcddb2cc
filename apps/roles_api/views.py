import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, mixins, filters, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view

from . import catalog
from .models import Role, RoleFormPermission
from .permission_config import ROLES, PERMISSIONS
from .permissions import FormPermission, form_permission_for
from .serializers import (
    FormSerializer, PermissionSerializer, PermissionCreateSerializer, RoleSerializer,
    RoleFormPermissionSerializer, AssignPermissionSerializer,
)
from apps.audit_api.mixins import AuditLoggingMixin
from apps.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)
User = get_user_model()


@extend_schema_view(
    list=extend_schema(description="Lista todos los roles."),
    retrieve=extend_schema(description="Obtiene los detalles de un rol específico."),
    create=extend_schema(description="Crea un nuevo rol."),
    update=extend_schema(description="Actualiza un rol existente."),
    partial_update=extend_schema(description="Actualiza parcialmente un rol."),
    destroy=extend_schema(description="Elimina un rol de forma permanente."),
)
class RoleViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = Role.objects.all().order_by('id')
    serializer_class = RoleSerializer
    permission_classes = [IsAuthenticated, FormPermission]
    form_code = ROLES
    audit_source = 'ROLES'
    action_operations = {
        'deactivate': 'update',
        'by_code': 'read',
        'by_user': 'read',
        'permissions_summary': 'read',
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['code', 'is_active']
    ordering_fields = ['id', 'code', 'name']
    search_fields = ['code', 'name', 'description']
    ordering = ['id']

    @extend_schema(description="Desactiva el rol sin borrarlo; sus permisos dejan de aplicar.")
    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        role = self.get_object()
        if role.is_active:
            role.is_active = False
            role.save(update_fields=['is_active', 'updated_at'])
            self.log_action('deactivate', role)
        return Response(self.get_serializer(role).data)

    @action(detail=False, methods=['get'], url_path=r'by-code/(?P<code>[^/.]+)', url_name='by-code')
    def by_code(self, request, code=None):
        role = Role.objects.filter(code__iexact=code).first()
        if role is None:
            raise NotFoundError(f"No existe un rol con código {code}.")
        return Response(self.get_serializer(role).data)

    @action(detail=False, methods=['get'], url_path=r'by-user/(?P<user_id>\d+)', url_name='by-user')
    def by_user(self, request, user_id=None):
        user = get_object_or_404(User, pk=user_id)
        roles = Role.objects.filter(user_roles_assignments__user=user).order_by('id')
        return Response(self.get_serializer(roles, many=True).data)

    @extend_schema(description="Todos los formularios con la plantilla asignada al rol o sin acceso.")
    @action(detail=True, methods=['get'], url_path='permissions-summary', url_name='permissions-summary')
    def permissions_summary(self, request, pk=None):
        return Response(catalog.role_summary(self.get_object()))


class FormViewSet(viewsets.ReadOnlyModelViewSet):
    """Catálogo de formularios protegidos."""
    serializer_class = FormSerializer
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]
    pagination_class = None

    def get_queryset(self):
        return catalog.list_forms()


class PermissionTemplateViewSet(mixins.ListModelMixin,
                                mixins.RetrieveModelMixin,
                                viewsets.GenericViewSet):
    serializer_class = PermissionSerializer
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]
    pagination_class = None

    def get_queryset(self):
        return catalog.list_permissions()

    @extend_schema(request=PermissionCreateSerializer, responses={201: PermissionSerializer, 200: PermissionSerializer})
    def create(self, request, *args, **kwargs):
        serializer = PermissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        permission, created = catalog.get_or_create_permission(**serializer.validated_data)
        return Response(
            PermissionSerializer(permission).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class RoleFormPermissionViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Matriz rol -> formulario -> plantilla.

    POST reemplaza la asignación de (role_id, form_id); DELETE en
    ``remove`` la elimina por completo.
    """
    serializer_class = RoleFormPermissionSerializer
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['role', 'form']
    action_operations = {'remove': 'delete'}

    def get_queryset(self):
        return RoleFormPermission.objects.select_related('role', 'form', 'permission').order_by('role_id', 'form_id')

    @extend_schema(request=AssignPermissionSerializer, responses={200: RoleFormPermissionSerializer})
    def create(self, request, *args, **kwargs):
        serializer = AssignPermissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = catalog.assign_permission(actor=request.user, **serializer.validated_data)
        return Response(RoleFormPermissionSerializer(assignment).data)

    @extend_schema(request=AssignPermissionSerializer)
    @action(detail=False, methods=['post'])
    def remove(self, request):
        serializer = AssignPermissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        catalog.remove_permission(
            serializer.validated_data['role_id'],
            serializer.validated_data['form_id'],
            actor=request.user,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class RolesSummaryView(APIView):
    """Resumen de permisos de todos los roles activos."""
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]

    def get(self, request):
        roles = Role.objects.filter(is_active=True).order_by('id')
        return Response([catalog.role_summary(role) for role in roles])
