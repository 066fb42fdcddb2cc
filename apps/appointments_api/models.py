import secrets

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.clients_api.models import Customer
from apps.sites_api.models import Site, AppointmentType


class AppointmentStatus(models.TextChoices):
    PENDING = 'pending', 'Pendiente'
    COMPLETED = 'completed', 'Completada'
    CANCELLED = 'cancelled', 'Cancelada'


TERMINAL_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


def generate_ticket_number(date=None):
    date = date or timezone.localdate()
    return f"CITA-{date:%Y%m%d}-{secrets.token_hex(3).upper()}"


class AppointmentQuerySet(models.QuerySet):
    def active(self):
        """Citas que ocupan su horario (todo lo que no está cancelado)."""
        return self.exclude(status=AppointmentStatus.CANCELLED)

    def pending(self):
        return self.filter(status=AppointmentStatus.PENDING)

    def occupying(self, site_id, date, time=None):
        queryset = self.active().filter(site_id=site_id, date=date)
        if time is not None:
            queryset = queryset.filter(time=time)
        return queryset


class Appointment(models.Model):
    ticket_number = models.CharField(max_length=30, unique=True, editable=False)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='appointments')
    site = models.ForeignKey(Site, on_delete=models.PROTECT, related_name='appointments')
    appointment_type = models.ForeignKey(AppointmentType, on_delete=models.PROTECT, related_name='appointments')
    # Fecha y hora locales de la sede, sin conversión de zona horaria
    date = models.DateField()
    time = models.TimeField()
    status = models.CharField(max_length=10, choices=AppointmentStatus.choices, default=AppointmentStatus.PENDING)
    notes = models.TextField(blank=True, max_length=500)
    assigned_technician = models.CharField(max_length=100, blank=True, null=True)
    technician_notes = models.TextField(blank=True, null=True, max_length=1000)
    cancellation_reason = models.TextField(blank=True, null=True, max_length=500)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='appointments_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        verbose_name = 'Cita'
        verbose_name_plural = 'Citas'
        ordering = ['-date', '-time']
        constraints = [
            models.UniqueConstraint(
                fields=['site', 'date', 'time'],
                condition=~Q(status='cancelled'),
                name='unique_active_slot',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status='cancelled', cancellation_reason__isnull=False)
                    | (~Q(status='cancelled') & Q(cancellation_reason__isnull=True))
                ),
                name='cancellation_reason_iff_cancelled',
            ),
        ]
        indexes = [
            models.Index(fields=['site', 'date'], name='appointment_site_date_idx'),
            models.Index(fields=['status'], name='appointment_status_idx'),
        ]

    def __str__(self):
        return f'{self.ticket_number} {self.site} {self.date} {self.time:%H:%M}'

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES
