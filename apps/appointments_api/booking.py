"""
Reserva y liberación de horarios.

La exclusividad de (sede, fecha, hora) la garantiza la restricción única
parcial ``unique_active_slot`` de Appointment: la reserva es un único INSERT
y la base de datos decide quién gana. No hay lectura previa que cierre la
carrera ni bloqueo en la aplicación, así funciona igual con varias
instancias del servicio. El perdedor recibe SlotConflict y debe volver a
consultar la disponibilidad.
"""

import logging

from django.db import transaction, IntegrityError
from django.utils import timezone

from apps.audit_api.utils import create_audit_log
from apps.clients_api.models import Customer
from apps.roles_api.permission_config import CITAS
from apps.roles_api.resolver import AuthorizationResolver
from apps.utils.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, SlotConflict, StorageError, storage_errors,
)
from .availability import template_times
from .lifecycle import transition, get_appointment
from .models import Appointment, AppointmentStatus, generate_ticket_number
from . import validators

logger = logging.getLogger(__name__)


def reserve_slot(customer_id, site_id, appointment_type_id, date, time, notes='', actor=None):
    """
    Crea una cita Pendiente en el horario indicado.

    Con ``actor`` se exige permiso de creación sobre CITAS (consola); sin
    actor es el flujo público. Falla con SlotConflict si otra cita activa
    ya ocupa el horario; en ese caso no queda nada escrito.
    """
    if actor is not None:
        AuthorizationResolver.require(actor, CITAS, 'create')

    notes = validators.clean_notes(notes)
    date = validators.clean_date(date)
    time = validators.clean_time(time)

    with storage_errors(logger, 'reserve_slot'):
        customer = validators.get_active_customer(customer_id)
        site = validators.get_active_site(site_id)
        appointment_type = validators.get_active_appointment_type(appointment_type_id)

        if time not in template_times(site.pk, appointment_type.pk):
            raise ValidationError(f"La hora {time:%H:%M} no está habilitada para la sede y el tipo de cita.")

        try:
            with transaction.atomic():
                appointment = Appointment.objects.create(
                    ticket_number=generate_ticket_number(date),
                    customer=customer,
                    site=site,
                    appointment_type=appointment_type,
                    date=date,
                    time=time,
                    notes=notes,
                    status=AppointmentStatus.PENDING,
                    created_by=actor if actor is not None and actor.is_authenticated else None,
                )
                create_audit_log(
                    user=actor,
                    action='CREATE',
                    description=f"Cita {appointment.ticket_number} reservada para {customer.customer_number}",
                    content_object=appointment,
                    source='APPOINTMENTS' if actor is not None else 'PUBLIC',
                    extra_data={
                        'site_id': site.pk,
                        'date': str(date),
                        'time': time.strftime('%H:%M'),
                    },
                )
        except IntegrityError as exc:
            if Appointment.objects.occupying(site.pk, date, time).exists():
                logger.info("Horario ocupado: sede=%s %s %s", site.code, date, time)
                raise SlotConflict() from exc
            logger.error("Error de integridad al reservar sede=%s %s %s: %s", site.code, date, time, exc)
            raise StorageError() from exc

    logger.info("Cita %s reservada: sede=%s %s %s", appointment.ticket_number, site.code, date, time)
    return appointment


def cancel_reservation(appointment_id, reason, actor=None, customer_number=None):
    """
    Cancela la cita y libera el horario. Cancelar una cita ya cancelada no hace nada.

    El operador necesita permiso de actualización sobre CITAS; el cliente
    anónimo sólo puede cancelar citas propias (``customer_number``).
    """
    if actor is not None:
        AuthorizationResolver.require(actor, CITAS, 'update')
    elif not customer_number:
        raise AuthorizationError("Debe identificarse para cancelar la cita.")

    reason = validators.clean_reason(reason)

    if actor is None:
        with storage_errors(logger, 'cancel_reservation'):
            appointment = get_appointment(appointment_id)
            customer = Customer.objects.by_number(customer_number)
            if customer is None or appointment.customer_id != customer.pk:
                raise NotFoundError(f"La cita {appointment_id} no existe.")

    appointment, changed = transition(
        appointment_id, AppointmentStatus.CANCELLED,
        actor=actor,
        source='APPOINTMENTS' if actor is not None else 'PUBLIC',
        cancellation_reason=reason,
        cancelled_at=timezone.now(),
    )
    if not changed:
        logger.info("Cita %s ya estaba cancelada", appointment.ticket_number)
    return appointment


def lookup_appointment(ticket_number, customer_number):
    """Cita por número de ticket, sólo si pertenece al cliente indicado."""
    customer = Customer.objects.by_number(customer_number)
    appointment = None
    if customer is not None and ticket_number:
        appointment = Appointment.objects.select_related(
            'site', 'appointment_type', 'customer'
        ).filter(ticket_number=str(ticket_number).strip().upper(), customer=customer).first()
    if appointment is None:
        raise NotFoundError("No se encontró una cita con ese número para el cliente indicado.")
    return appointment


def customer_appointments(customer_number):
    customer = Customer.objects.by_number(customer_number)
    if customer is None:
        raise NotFoundError(f"El cliente {customer_number} no existe o está inactivo.")
    return customer.appointments.select_related('site', 'appointment_type', 'customer').order_by('-date', '-time')
