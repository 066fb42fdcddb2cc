from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User
from apps.roles_api.models import UserRole


class UserRoleInlineForUser(admin.TabularInline):
    model = UserRole
    extra = 1
    fields = ('role', 'assigned_at',)
    readonly_fields = ('assigned_at',)

@admin.register(User)
class CustomUserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'full_name', 'is_active', 'get_roles_display')
    list_filter = ('is_active', 'is_staff')

    search_fields = ('username', 'email', 'full_name')
    ordering = ('username',)

    fieldsets = (
        (None, {'fields': ('username', 'email', 'password')}),
        ('Datos personales', {'fields': ('full_name',)}),
        ('Consola', {'fields': ('allowed_tabs',)}),
        ('Permisos', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Fechas', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'full_name', 'password1', 'password2'),
        }),
    )

    filter_horizontal = ()
    inlines = (UserRoleInlineForUser,)

    @admin.display(description='Roles Asignados')
    def get_roles_display(self, obj):
        roles = UserRole.objects.filter(user=obj).select_related('role')
        return ", ".join([user_role.role.code for user_role in roles])
