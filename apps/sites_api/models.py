from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Site(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    address = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    city = models.CharField(max_length=100)
    department = models.CharField(max_length=100, blank=True)
    is_primary = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Sede'
        verbose_name_plural = 'Sedes'
        ordering = ['-is_primary', 'name']
        indexes = [
            models.Index(fields=['is_active'], name='site_active_idx'),
        ]

    def __str__(self):
        return self.name


class AppointmentType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    estimated_minutes = models.PositiveSmallIntegerField(
        default=30,
        validators=[MinValueValidator(1), MaxValueValidator(480)],
        help_text="Duración estimada en minutos (1 a 480)"
    )
    requires_documentation = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Tipo de cita'
        verbose_name_plural = 'Tipos de cita'
        ordering = ['name']

    def __str__(self):
        return self.name


class AvailableHour(models.Model):
    """Plantilla de horario recurrente; sin tipo de cita aplica a todos los tipos."""
    time = models.TimeField()
    site = models.ForeignKey(Site, on_delete=models.CASCADE, related_name='available_hours')
    appointment_type = models.ForeignKey(
        AppointmentType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='available_hours'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Hora disponible'
        verbose_name_plural = 'Horas disponibles'
        ordering = ['site', 'time']
        indexes = [
            models.Index(fields=['site', 'is_active'], name='hour_site_active_idx'),
        ]

    def save(self, *args, **kwargs):
        # las citas se reservan al minuto
        if self.time is not None:
            self.time = self.time.replace(second=0, microsecond=0)
        super().save(*args, **kwargs)

    def __str__(self):
        scope = self.appointment_type or 'todos los tipos'
        return f"{self.site} {self.time:%H:%M} ({scope})"
