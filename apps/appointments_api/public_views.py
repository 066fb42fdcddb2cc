"""
Portal público de agendamiento (sin autenticación).

El cliente se identifica con su número de cliente; nunca se le pide un
actor, por eso las operaciones de booking se llaman con actor=None.
"""

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.clients_api.models import Customer
from apps.clients_api.serializers import PublicCustomerSerializer
from apps.sites_api.models import Site, AppointmentType
from apps.sites_api.serializers import PublicSiteSerializer, PublicAppointmentTypeSerializer
from apps.utils.exceptions import ValidationError, NotFoundError
from . import booking
from .availability import compute_available_slots
from .models import AppointmentStatus
from .serializers import PublicAppointmentSerializer, PublicBookingSerializer, PublicCancelSerializer

logger = logging.getLogger(__name__)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_sites(request):
    sites = Site.objects.filter(is_active=True)
    return Response(PublicSiteSerializer(sites, many=True).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_appointment_types(request):
    types = AppointmentType.objects.filter(is_active=True)
    return Response(PublicAppointmentTypeSerializer(types, many=True).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_available_hours(request):
    site_id = request.query_params.get('site')
    date = request.query_params.get('date')
    if not site_id or not date:
        raise ValidationError("Los parámetros site y date son requeridos.")

    slots = compute_available_slots(date, site_id, request.query_params.get('appointment_type'))
    return Response({
        'site': site_id,
        'date': date,
        'available_hours': [slot.strftime('%H:%M') for slot in slots],
    })


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_validate_customer(request, customer_number):
    """Paso previo a agendar o consultar: confirma que el número de cliente existe y está activo."""
    customer = Customer.objects.by_number(customer_number)
    if customer is None:
        raise NotFoundError("Cliente no encontrado.")
    return Response(PublicCustomerSerializer(customer).data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_book(request):
    serializer = PublicBookingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    customer = Customer.objects.by_number(data['customer_number'])
    if customer is None:
        raise ValidationError("El número de cliente no es válido.")

    appointment = booking.reserve_slot(
        customer.pk,
        data['site_id'],
        data['appointment_type_id'],
        data['date'],
        data['time'],
        notes=data.get('notes', ''),
    )
    return Response(PublicAppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_lookup(request):
    appointment = booking.lookup_appointment(
        request.query_params.get('ticket_number'),
        request.query_params.get('customer_number'),
    )
    return Response(PublicAppointmentSerializer(appointment).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_customer_appointments(request, customer_number):
    appointments = booking.customer_appointments(customer_number)
    return Response(PublicAppointmentSerializer(appointments, many=True).data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_cancel(request, ticket_number):
    serializer = PublicCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    customer_number = serializer.validated_data['customer_number']

    appointment = booking.lookup_appointment(ticket_number, customer_number)
    appointment = booking.cancel_reservation(
        appointment.pk,
        serializer.validated_data['reason'],
        customer_number=customer_number,
    )
    return Response(PublicAppointmentSerializer(appointment).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_verify(request):
    """Datos que muestra la página de verificación a la que apunta el código QR."""
    appointment = booking.lookup_appointment(
        request.query_params.get('ticket_number'),
        request.query_params.get('customer_number'),
    )
    valid = (
        appointment.status == AppointmentStatus.PENDING
        and appointment.date >= timezone.localdate()
    )
    if valid:
        message = 'Cita válida'
    elif appointment.status == AppointmentStatus.PENDING:
        message = 'La fecha de la cita ya pasó'
    else:
        message = f'La cita está {appointment.get_status_display().lower()}'

    return Response({
        'valid': valid,
        'ticket_number': appointment.ticket_number,
        'date': appointment.date,
        'time': appointment.time.strftime('%H:%M'),
        'status': appointment.status,
        'status_display': appointment.get_status_display(),
        'customer': {
            'customer_number': appointment.customer.customer_number,
            'full_name': appointment.customer.full_name,
        },
        'site': {
            'name': appointment.site.name,
            'address': appointment.site.address,
        },
        'appointment_type': {
            'name': appointment.appointment_type.name,
            'icon': appointment.appointment_type.icon,
        },
        'created_at': appointment.created_at,
        'notes': appointment.notes,
        'message': message,
    })
