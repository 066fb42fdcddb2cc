"""
Máquina de estados de la cita.

    Pendiente -> Completada
    Pendiente -> Cancelada

Completada y Cancelada son terminales. Reafirmar el estado actual se acepta
sin cambios para que los reintentos del cliente sean seguros; cualquier otra
transición desde un estado terminal es un ValidationError. Las correcciones
posteriores pasan por ``override``, que exige permiso de eliminación sobre
CITAS y queda auditada aparte.
"""

import logging

from django.db import transaction, IntegrityError
from django.utils import timezone

from apps.audit_api.utils import create_audit_log
from apps.roles_api.permission_config import CITAS
from apps.roles_api.resolver import AuthorizationResolver
from apps.utils.exceptions import ValidationError, NotFoundError, SlotConflict, StorageError, storage_errors
from .availability import template_times
from .models import Appointment, AppointmentStatus
from . import validators

logger = logging.getLogger(__name__)

NOT_ATTENDED_REASON = 'Cliente no asistió a la cita'

EDITABLE_FIELDS = ('date', 'time', 'site_id', 'appointment_type_id', 'notes')
OVERRIDE_FIELDS = EDITABLE_FIELDS + ('assigned_technician', 'technician_notes', 'cancellation_reason')


def get_appointment(appointment_id):
    try:
        return Appointment.objects.select_related('site', 'appointment_type', 'customer').get(pk=appointment_id)
    except (Appointment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"La cita {appointment_id} no existe.")


def _status_label(status):
    return AppointmentStatus(status).label


def transition(appointment_id, target, actor=None, source='APPOINTMENTS', **fields):
    """
    Lleva la cita de Pendiente a ``target`` con una actualización condicional.

    Devuelve (cita, cambió). Si la cita ya está en ``target`` no hace nada.
    """
    with storage_errors(logger, 'transition'):
        appointment = get_appointment(appointment_id)
        if appointment.status == target:
            return appointment, False
        if appointment.status != AppointmentStatus.PENDING:
            raise ValidationError(
                f"La cita {appointment.ticket_number} está {_status_label(appointment.status)} "
                f"y no admite más cambios de estado."
            )

        with transaction.atomic():
            updated = Appointment.objects.filter(
                pk=appointment.pk, status=AppointmentStatus.PENDING
            ).update(status=target, updated_at=timezone.now(), **fields)

            if not updated:
                # otra petición cambió el estado entre la lectura y la escritura
                appointment.refresh_from_db()
                if appointment.status == target:
                    return appointment, False
                raise ValidationError(
                    f"La cita {appointment.ticket_number} ya está {_status_label(appointment.status)}."
                )

            appointment.refresh_from_db()
            create_audit_log(
                user=actor,
                action='STATUS_CHANGE',
                description=(
                    f"Cita {appointment.ticket_number}: "
                    f"{_status_label(AppointmentStatus.PENDING)} -> {_status_label(target)}"
                ),
                content_object=appointment,
                source=source,
                extra_data={
                    'from': AppointmentStatus.PENDING,
                    'to': target,
                    'fields': sorted(fields),
                },
            )

    logger.info("Cita %s pasó a %s", appointment.ticket_number, target)
    return appointment, True


def _clean_slot_changes(appointment, fields, allowed, strict):
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationError(f"Campos no editables: {', '.join(sorted(unknown))}")

    changes = {}
    if 'site_id' in fields:
        changes['site_id'] = validators.get_active_site(fields['site_id']).pk
    if 'appointment_type_id' in fields:
        changes['appointment_type_id'] = validators.get_active_appointment_type(fields['appointment_type_id']).pk
    if 'date' in fields:
        changes['date'] = validators.clean_date(fields['date'], allow_past=not strict)
    if 'time' in fields:
        changes['time'] = validators.clean_time(fields['time'])
    if 'notes' in fields:
        changes['notes'] = validators.clean_notes(fields['notes'])
    if 'assigned_technician' in fields:
        changes['assigned_technician'] = validators.clean_technician(fields['assigned_technician'])
    if 'technician_notes' in fields:
        changes['technician_notes'] = validators.clean_technician_notes(fields['technician_notes'])
    if 'cancellation_reason' in fields:
        if appointment.status != AppointmentStatus.CANCELLED:
            raise ValidationError("Sólo una cita cancelada tiene motivo de cancelación.")
        changes['cancellation_reason'] = validators.clean_reason(fields['cancellation_reason'])

    moves_slot = any(key in changes for key in ('site_id', 'appointment_type_id', 'date', 'time'))
    if strict and moves_slot:
        site_id = changes.get('site_id', appointment.site_id)
        type_id = changes.get('appointment_type_id', appointment.appointment_type_id)
        time = changes.get('time', appointment.time)
        if time not in template_times(site_id, type_id):
            raise ValidationError(f"La hora {time:%H:%M} no está habilitada para la sede y el tipo de cita.")
    return changes


def _apply_changes(appointment, changes, expected_status=None):
    """Escribe los cambios; un choque con la restricción de horario es SlotConflict."""
    queryset = Appointment.objects.filter(pk=appointment.pk)
    if expected_status is not None:
        queryset = queryset.filter(status=expected_status)

    try:
        with transaction.atomic():
            updated = queryset.update(updated_at=timezone.now(), **changes)
    except IntegrityError as exc:
        site_id = changes.get('site_id', appointment.site_id)
        date = changes.get('date', appointment.date)
        time = changes.get('time', appointment.time)
        if Appointment.objects.occupying(site_id, date, time).exclude(pk=appointment.pk).exists():
            logger.info("Horario ocupado al editar la cita %s: sede=%s %s %s",
                        appointment.ticket_number, site_id, date, time)
            raise SlotConflict() from exc
        logger.error("Error de integridad al editar la cita %s: %s", appointment.ticket_number, exc)
        raise StorageError() from exc
    return updated


def _snapshot(appointment, keys):
    return {key: str(getattr(appointment, key)) if getattr(appointment, key) is not None else None for key in keys}


class AppointmentLifecycle:
    """Operaciones del operador sobre una cita. Cada una verifica permisos antes de leer o escribir."""

    @staticmethod
    def complete(appointment_id, technician, technician_notes=None, actor=None):
        AuthorizationResolver.require(actor, CITAS, 'update')
        technician = validators.clean_technician(technician)
        technician_notes = validators.clean_technician_notes(technician_notes)
        appointment, _ = transition(
            appointment_id, AppointmentStatus.COMPLETED, actor=actor,
            assigned_technician=technician,
            technician_notes=technician_notes,
            completed_at=timezone.now(),
        )
        return appointment

    @staticmethod
    def cancel(appointment_id, reason, actor=None):
        AuthorizationResolver.require(actor, CITAS, 'update')
        reason = validators.clean_reason(reason)
        appointment, _ = transition(
            appointment_id, AppointmentStatus.CANCELLED, actor=actor,
            cancellation_reason=reason,
            cancelled_at=timezone.now(),
        )
        return appointment

    @staticmethod
    def mark_not_attended(appointment_id, reason=None, actor=None):
        return AppointmentLifecycle.cancel(appointment_id, reason or NOT_ATTENDED_REASON, actor=actor)

    @staticmethod
    def update_fields(appointment_id, actor=None, **fields):
        """Edita fecha, hora, sede, tipo u observaciones de una cita Pendiente."""
        AuthorizationResolver.require(actor, CITAS, 'update')
        with storage_errors(logger, 'update_fields'):
            appointment = get_appointment(appointment_id)
            if appointment.status != AppointmentStatus.PENDING:
                raise ValidationError(
                    f"La cita {appointment.ticket_number} está {_status_label(appointment.status)}; "
                    f"sólo se editan citas pendientes."
                )
            changes = _clean_slot_changes(appointment, fields, EDITABLE_FIELDS, strict=True)
            if not changes:
                return appointment

            before = _snapshot(appointment, changes)
            if not _apply_changes(appointment, changes, expected_status=AppointmentStatus.PENDING):
                raise ValidationError(f"La cita {appointment.ticket_number} cambió de estado; recargue la información.")

            appointment.refresh_from_db()
            create_audit_log(
                user=actor,
                action='UPDATE',
                description=f"Cita {appointment.ticket_number} editada",
                content_object=appointment,
                source='APPOINTMENTS',
                extra_data={'before': before, 'after': _snapshot(appointment, changes)},
            )
        return appointment

    @staticmethod
    def override(appointment_id, justification, actor=None, **fields):
        """Corrección administrativa en cualquier estado; nunca cambia el estado."""
        AuthorizationResolver.require(actor, CITAS, 'delete')
        justification = validators.clean_reason(justification, label='motivo de la corrección')
        if 'status' in fields:
            raise ValidationError("La corrección administrativa no puede cambiar el estado de la cita.")

        with storage_errors(logger, 'override'):
            appointment = get_appointment(appointment_id)
            changes = _clean_slot_changes(appointment, fields, OVERRIDE_FIELDS, strict=False)
            if not changes:
                raise ValidationError("No se indicaron cambios.")

            before = _snapshot(appointment, changes)
            _apply_changes(appointment, changes)
            appointment.refresh_from_db()
            create_audit_log(
                user=actor,
                action='ADMIN_OVERRIDE',
                description=f"Corrección administrativa de la cita {appointment.ticket_number}: {justification}",
                content_object=appointment,
                source='APPOINTMENTS',
                extra_data={
                    'status': appointment.status,
                    'justification': justification,
                    'before': before,
                    'after': _snapshot(appointment, changes),
                },
            )
        logger.info("Corrección administrativa de la cita %s por %s", appointment.ticket_number, actor)
        return appointment

    @staticmethod
    def purge(appointment_id, actor=None):
        """Borrado permanente; fuera de la máquina de estados."""
        AuthorizationResolver.require(actor, CITAS, 'delete')
        with storage_errors(logger, 'purge'):
            appointment = get_appointment(appointment_id)
            with transaction.atomic():
                create_audit_log(
                    user=actor,
                    action='DELETE',
                    description=f"Cita {appointment.ticket_number} eliminada permanentemente",
                    content_object=appointment,
                    source='APPOINTMENTS',
                    extra_data={
                        'ticket_number': appointment.ticket_number,
                        'status': appointment.status,
                        'site_id': appointment.site_id,
                        'date': str(appointment.date),
                        'time': str(appointment.time),
                    },
                )
                appointment.delete()
        logger.info("Cita %s eliminada permanentemente", appointment.ticket_number)
