from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from .filters import AuditLogFilter
from .models import AuditLog
from .serializers import AuditLogSerializer
from apps.roles_api.permission_config import PERMISSIONS
from apps.roles_api.permissions import form_permission_for

class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Consulta de la bitácora: transiciones de citas, cambios de permisos,
    pestañas, overrides y purgas.
    """
    queryset = AuditLog.objects.all().select_related('user', 'content_type')
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated, form_permission_for(PERMISSIONS)]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = AuditLogFilter
    search_fields = ['description', 'user__username', 'user__full_name']
    ordering_fields = ['timestamp', 'action', 'source']
    ordering = ['-timestamp']

    @action(detail=False, methods=['get'])
    def actions(self, request):
        return Response([{'value': value, 'label': label} for value, label in AuditLog.ACTION_CHOICES])

    @action(detail=False, methods=['get'])
    def sources(self, request):
        sources = AuditLog._meta.get_field('source').choices
        return Response([{'value': value, 'label': label} for value, label in sources])
