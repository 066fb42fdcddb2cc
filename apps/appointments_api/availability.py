"""
Cálculo de horarios libres de una sede para una fecha.

Las plantillas AvailableHour activas de la sede (las que no tienen tipo de
cita aplican a todos los tipos) menos las horas ya ocupadas por citas no
canceladas en esa misma sede y fecha. Fecha y hora son valores locales de la
sede; no se hace ninguna conversión de zona horaria.
"""

import datetime

from django.db.models import Q
from django.utils.dateparse import parse_date, parse_time

from apps.sites_api.models import Site, AvailableHour
from .models import Appointment


def _as_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return parse_date(str(value)) if value else None
    except ValueError:
        return None


def _as_time(value):
    if isinstance(value, datetime.time):
        return value.replace(second=0, microsecond=0)
    try:
        parsed = parse_time(str(value)) if value else None
    except ValueError:
        return None
    return parsed.replace(second=0, microsecond=0) if parsed else None


def _as_id(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def template_times(site_id, appointment_type_id=None):
    """Horas de plantilla activas para la sede; sin tipo se devuelven todas las de la sede."""
    hours = AvailableHour.objects.filter(site_id=site_id, is_active=True)
    if appointment_type_id is not None:
        hours = hours.filter(Q(appointment_type__isnull=True) | Q(appointment_type_id=appointment_type_id))
    return {_as_time(time) for time in hours.values_list('time', flat=True)}


def occupied_times(site_id, date):
    times = Appointment.objects.occupying(site_id, date).values_list('time', flat=True)
    return {_as_time(time) for time in times}


def compute_available_slots(date, site_id, appointment_type_id=None):
    """
    Lista ordenada y sin duplicados de horas libres.

    Una sede inexistente o inactiva, o una fecha inválida, producen una
    lista vacía; los errores de la base de datos sí se propagan.
    """
    date = _as_date(date)
    site_id = _as_id(site_id)
    if date is None or site_id is None:
        return []
    if not Site.objects.filter(pk=site_id, is_active=True).exists():
        return []

    type_id = _as_id(appointment_type_id)
    if appointment_type_id not in (None, '') and type_id is None:
        return []

    free = template_times(site_id, type_id) - occupied_times(site_id, date)
    return sorted(free)


def is_slot_available(date, site_id, time, appointment_type_id=None):
    time = _as_time(time)
    if time is None:
        return False
    return time in compute_available_slots(date, site_id, appointment_type_id)
