from django.db import transaction
from django.db.models import ProtectedError
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.audit_api.mixins import AuditLoggingMixin
from apps.roles_api.permission_config import SEDES, TIPOS_CITA, HORAS_DISPONIBLES
from apps.roles_api.permissions import FormPermission
from apps.utils.exceptions import ValidationError
from .models import Site, AppointmentType, AvailableHour
from .serializers import SiteSerializer, AppointmentTypeSerializer, AvailableHourSerializer


class ReferenceDataViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    """
    CRUD de datos de referencia protegido por formulario.

    ``deactivate`` exige permiso de actualización; DELETE borra de forma
    permanente y exige permiso de eliminación.
    """
    permission_classes = [IsAuthenticated, FormPermission]
    audit_source = 'SITES'
    action_operations = {'deactivate': 'update', 'activate': 'update'}
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        instance = self.get_object()
        if instance.is_active:
            instance.is_active = False
            instance.save(update_fields=['is_active'])
            self.log_action('deactivate', instance)
        return Response(self.get_serializer(instance).data)

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        instance = self.get_object()
        if not instance.is_active:
            instance.is_active = True
            instance.save(update_fields=['is_active'])
            self.log_action('activate', instance)
        return Response(self.get_serializer(instance).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        try:
            with transaction.atomic():
                self.perform_destroy(instance)
        except ProtectedError:
            raise ValidationError(
                f"{instance} tiene citas asociadas y no puede eliminarse; desactívelo en su lugar."
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class SiteViewSet(ReferenceDataViewSet):
    queryset = Site.objects.all()
    serializer_class = SiteSerializer
    form_code = SEDES
    filterset_fields = ['is_active', 'is_primary', 'city']
    search_fields = ['code', 'name', 'city', 'address']
    ordering_fields = ['name', 'code', 'city']


class AppointmentTypeViewSet(ReferenceDataViewSet):
    queryset = AppointmentType.objects.all()
    serializer_class = AppointmentTypeSerializer
    form_code = TIPOS_CITA
    filterset_fields = ['is_active', 'requires_documentation']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'estimated_minutes']


class AvailableHourViewSet(ReferenceDataViewSet):
    queryset = AvailableHour.objects.select_related('site', 'appointment_type')
    serializer_class = AvailableHourSerializer
    form_code = HORAS_DISPONIBLES
    filterset_fields = ['is_active', 'site', 'appointment_type']
    ordering_fields = ['time', 'site']
