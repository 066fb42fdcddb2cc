from django.db import models
from django.conf import settings
from django.contrib.contenttypes.models import ContentType
from django.contrib.contenttypes.fields import GenericForeignKey
from django.utils import timezone


class AuditLog(models.Model):
    """Registro unificado de cambios de estado, permisos y acciones administrativas"""

    ACTION_CHOICES = [
        ('CREATE', 'Creación'),
        ('UPDATE', 'Actualización'),
        ('DELETE', 'Eliminación'),
        ('DEACTIVATE', 'Desactivación'),
        ('STATUS_CHANGE', 'Cambio de estado'),
        ('ADMIN_OVERRIDE', 'Corrección administrativa'),
        ('PERMISSION_GRANT', 'Concesión de permiso'),
        ('PERMISSION_REVOKE', 'Revocación de permiso'),
        ('ROLE_ASSIGN', 'Asignación de rol'),
        ('TABS_UPDATE', 'Actualización de pestañas'),
    ]

    SOURCE_CHOICES = [
        ('AUTH', 'Autenticación'),
        ('ROLES', 'Roles y permisos'),
        ('USERS', 'Usuarios'),
        ('SITES', 'Sedes y horarios'),
        ('APPOINTMENTS', 'Citas'),
        ('PUBLIC', 'Portal público'),
        ('SYSTEM', 'Sistema'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="Usuario que realizó la acción (nulo para el portal público)"
    )

    action = models.CharField(max_length=50, choices=ACTION_CHOICES)

    description = models.TextField()

    content_type = models.ForeignKey(
        ContentType,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
    )
    object_id = models.PositiveIntegerField(null=True, blank=True)
    content_object = GenericForeignKey('content_type', 'object_id')

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    extra_data = models.JSONField(default=dict, blank=True)

    timestamp = models.DateTimeField(default=timezone.now)

    source = models.CharField(max_length=50, choices=SOURCE_CHOICES, default='SYSTEM')

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['timestamp'], name='audit_timestamp_idx'),
            models.Index(fields=['action', 'timestamp'], name='audit_action_idx'),
            models.Index(fields=['content_type', 'object_id'], name='audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.action} - {self.timestamp}"
