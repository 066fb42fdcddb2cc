from django.contrib import admin
from .models import Form, Permission, Role, UserRole, RoleFormPermission


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 1
    fields = ('user', 'assigned_at')
    readonly_fields = ('assigned_at',)


class RoleFormPermissionInline(admin.TabularInline):
    model = RoleFormPermission
    extra = 0
    fields = ('form', 'permission', 'assigned_at')
    readonly_fields = ('assigned_at',)


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('code', 'name')
    inlines = [RoleFormPermissionInline, UserRoleInline]


@admin.register(Form)
class FormAdmin(admin.ModelAdmin):
    list_display = ('code', 'display_name', 'is_active')


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ('description', 'can_read', 'can_create', 'can_update', 'can_delete', 'is_active')
    list_filter = ('is_active',)
