import logging

from rest_framework import viewsets, mixins, filters, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.roles_api.permission_config import CITAS
from apps.roles_api.permissions import FormPermission
from apps.utils.exceptions import ValidationError
from . import booking
from .availability import compute_available_slots, is_slot_available
from .lifecycle import AppointmentLifecycle
from .models import Appointment, AppointmentStatus
from .serializers import (
    AppointmentSerializer, AppointmentCreateSerializer, AppointmentUpdateSerializer,
    AppointmentOverrideSerializer, CompleteSerializer, CancelSerializer, NotAttendedSerializer,
)

logger = logging.getLogger(__name__)

AVAILABILITY_PARAMETERS = [
    OpenApiParameter('site', int, required=True),
    OpenApiParameter('date', str, required=True, description='AAAA-MM-DD'),
    OpenApiParameter('appointment_type', int, required=False),
]


def availability_params(request):
    site_id = request.query_params.get('site')
    date = request.query_params.get('date')
    if not site_id or not date:
        raise ValidationError("Los parámetros site y date son requeridos.")
    return site_id, date, request.query_params.get('appointment_type')


class AppointmentViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         viewsets.GenericViewSet):
    """
    Citas desde la consola (formulario CITAS).

    Las escrituras pasan por BookingCoordinator y AppointmentLifecycle; la
    vista sólo traduce la petición. Cada respuesta vuelve a leer la cita
    desde la base de datos.
    """
    queryset = Appointment.objects.select_related('customer', 'site', 'appointment_type')
    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated, FormPermission]
    form_code = CITAS
    action_operations = {
        'complete': 'update',
        'cancel': 'update',
        'not_attended': 'update',
        'override': 'delete',
        'pending': 'read',
        'completed': 'read',
        'available_hours': 'read',
        'check_availability': 'read',
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'site', 'date', 'appointment_type']
    search_fields = ['ticket_number', 'customer__customer_number', 'customer__full_name']
    ordering_fields = ['date', 'time', 'created_at']
    ordering = ['date', 'time']

    def respond(self, appointment, status_code=status.HTTP_200_OK):
        appointment = self.get_queryset().get(pk=appointment.pk)
        return Response(AppointmentSerializer(appointment).data, status=status_code)

    @extend_schema(request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = booking.reserve_slot(actor=request.user, **serializer.validated_data)
        return self.respond(appointment, status.HTTP_201_CREATED)

    @extend_schema(request=AppointmentUpdateSerializer, responses={200: AppointmentSerializer})
    def update(self, request, *args, **kwargs):
        serializer = AppointmentUpdateSerializer(data=request.data, partial=kwargs.get('partial', False))
        serializer.is_valid(raise_exception=True)
        appointment = AppointmentLifecycle.update_fields(
            kwargs['pk'], actor=request.user, **serializer.validated_data
        )
        return self.respond(appointment)

    def partial_update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return self.update(request, *args, **kwargs)

    @extend_schema(description="Borrado permanente de la cita (requiere permiso de eliminación).")
    def destroy(self, request, *args, **kwargs):
        AppointmentLifecycle.purge(kwargs['pk'], actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=CompleteSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        serializer = CompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = AppointmentLifecycle.complete(
            pk,
            serializer.validated_data['assigned_technician'],
            serializer.validated_data.get('technician_notes'),
            actor=request.user,
        )
        return self.respond(appointment)

    @extend_schema(request=CancelSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = booking.cancel_reservation(pk, serializer.validated_data['reason'], actor=request.user)
        return self.respond(appointment)

    @extend_schema(request=NotAttendedSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['post'], url_path='not-attended', url_name='not-attended')
    def not_attended(self, request, pk=None):
        serializer = NotAttendedSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = AppointmentLifecycle.mark_not_attended(
            pk, serializer.validated_data.get('reason'), actor=request.user
        )
        return self.respond(appointment)

    @extend_schema(request=AppointmentOverrideSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=['post'])
    def override(self, request, pk=None):
        serializer = AppointmentOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fields = dict(serializer.validated_data)
        justification = fields.pop('justification')
        appointment = AppointmentLifecycle.override(pk, justification, actor=request.user, **fields)
        return self.respond(appointment)

    @action(detail=False, methods=['get'])
    def pending(self, request):
        queryset = self.filter_queryset(self.get_queryset()).filter(status=AppointmentStatus.PENDING)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=False, methods=['get'])
    def completed(self, request):
        queryset = self.filter_queryset(self.get_queryset()).filter(status=AppointmentStatus.COMPLETED)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)

    @extend_schema(parameters=AVAILABILITY_PARAMETERS)
    @action(detail=False, methods=['get'], url_path='available-hours', url_name='available-hours')
    def available_hours(self, request):
        site_id, date, type_id = availability_params(request)
        slots = compute_available_slots(date, site_id, type_id)
        return Response({
            'site': site_id,
            'date': date,
            'available_hours': [slot.strftime('%H:%M') for slot in slots],
        })

    @extend_schema(parameters=AVAILABILITY_PARAMETERS + [OpenApiParameter('time', str, required=True)])
    @action(detail=False, methods=['get'], url_path='check-availability', url_name='check-availability')
    def check_availability(self, request):
        site_id, date, type_id = availability_params(request)
        time = request.query_params.get('time')
        if not time:
            raise ValidationError("El parámetro time es requerido.")
        return Response({'available': is_slot_available(date, site_id, time, type_id)})
