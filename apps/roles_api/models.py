from django.conf import settings
from django.db import models
from django.utils.timezone import now


class Form(models.Model):
    """Recurso protegible al que se asignan permisos CRUD (ver permission_config.FORMS)."""
    code = models.CharField(max_length=50, unique=True)
    display_name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.code


class Permission(models.Model):
    """Plantilla reutilizable de cuatro banderas CRUD, no ligada a un formulario."""
    description = models.CharField(max_length=255, blank=True)
    can_read = models.BooleanField(default=False)
    can_create = models.BooleanField(default=False)
    can_update = models.BooleanField(default=False)
    can_delete = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=now)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['can_read', 'can_create', 'can_update', 'can_delete'],
                name='unique_crud_permission_bundle',
            ),
        ]

    def __str__(self):
        return self.description or self.build_description()

    def build_description(self):
        labels = [
            label for flag, label in (
                (self.can_read, 'Leer'),
                (self.can_create, 'Crear'),
                (self.can_update, 'Actualizar'),
                (self.can_delete, 'Eliminar'),
            ) if flag
        ]
        return ', '.join(labels) or 'Sin acceso'

    def as_flags(self):
        return {
            'can_read': self.can_read,
            'can_create': self.can_create,
            'can_update': self.can_update,
            'can_delete': self.can_delete,
        }


class Role(models.Model):
    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['code'], name='role_code_idx'),
        ]

    def __str__(self):
        return self.name


class UserRole(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='user_roles'
    )
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='user_roles_assignments')
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('user', 'role')
        indexes = [
            models.Index(fields=['user', 'role'], name='user_role_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.role.code}"


class RoleFormPermission(models.Model):
    """Plantilla asignada a un rol para un formulario; permission nulo = sin acceso."""
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='form_permissions')
    form = models.ForeignKey(Form, on_delete=models.CASCADE, related_name='role_permissions')
    permission = models.ForeignKey(
        Permission,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assignments'
    )
    assigned_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['role', 'form'], name='unique_role_form_permission'),
        ]

    def __str__(self):
        return f"{self.role.code} / {self.form.code}: {self.permission or 'sin acceso'}"
