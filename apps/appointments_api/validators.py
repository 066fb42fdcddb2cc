import datetime

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_time

from apps.clients_api.models import Customer
from apps.sites_api.models import Site, AppointmentType
from apps.utils.exceptions import ValidationError, NotFoundError

NOTES_MAX_LENGTH = 500
TECHNICIAN_MAX_LENGTH = 100
TECHNICIAN_NOTES_MAX_LENGTH = 1000


def clean_reason(reason, label='motivo de cancelación'):
    reason = (reason or '').strip()
    min_length = settings.CANCELLATION_REASON_MIN_LENGTH
    max_length = settings.CANCELLATION_REASON_MAX_LENGTH
    if len(reason) < min_length:
        raise ValidationError(f"El {label} debe tener al menos {min_length} caracteres.")
    if len(reason) > max_length:
        raise ValidationError(f"El {label} no puede superar {max_length} caracteres.")
    return reason


def clean_notes(notes):
    notes = (notes or '').strip()
    if len(notes) > NOTES_MAX_LENGTH:
        raise ValidationError(f"Las observaciones no pueden superar {NOTES_MAX_LENGTH} caracteres.")
    return notes


def clean_technician(technician):
    technician = (technician or '').strip()
    if not technician:
        raise ValidationError("Debe indicar el técnico asignado.")
    if len(technician) > TECHNICIAN_MAX_LENGTH:
        raise ValidationError(f"El nombre del técnico no puede superar {TECHNICIAN_MAX_LENGTH} caracteres.")
    return technician


def clean_technician_notes(notes):
    notes = (notes or '').strip()
    if len(notes) > TECHNICIAN_NOTES_MAX_LENGTH:
        raise ValidationError(
            f"Las observaciones del técnico no pueden superar {TECHNICIAN_NOTES_MAX_LENGTH} caracteres."
        )
    return notes or None


def clean_date(value, allow_past=False):
    if isinstance(value, datetime.datetime):
        value = value.date()
    if not isinstance(value, datetime.date):
        try:
            value = parse_date(str(value)) if value else None
        except ValueError:
            value = None
    if value is None:
        raise ValidationError("Fecha inválida; use el formato AAAA-MM-DD.")
    if not allow_past and value < timezone.localdate():
        raise ValidationError("No se pueden agendar citas en fechas pasadas.")
    return value


def clean_time(value):
    if not isinstance(value, datetime.time):
        try:
            value = parse_time(str(value)) if value else None
        except ValueError:
            value = None
    if value is None:
        raise ValidationError("Hora inválida; use el formato HH:MM.")
    return value.replace(second=0, microsecond=0)


def get_active_site(site_id):
    try:
        return Site.objects.get(pk=site_id, is_active=True)
    except (Site.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"La sede {site_id} no existe o está inactiva.")


def get_active_appointment_type(appointment_type_id):
    try:
        return AppointmentType.objects.get(pk=appointment_type_id, is_active=True)
    except (AppointmentType.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El tipo de cita {appointment_type_id} no existe o está inactivo.")


def get_active_customer(customer_id):
    try:
        return Customer.objects.get(pk=customer_id, is_active=True)
    except (Customer.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"El cliente {customer_id} no existe o está inactivo.")
