from rest_framework import serializers
from .models import Form, Permission, Role, UserRole, RoleFormPermission


class FormSerializer(serializers.ModelSerializer):
    class Meta:
        model = Form
        fields = ('id', 'code', 'display_name', 'is_active')


class PermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Permission
        fields = ('id', 'description', 'can_read', 'can_create', 'can_update',
                  'can_delete', 'is_active', 'created_at')
        read_only_fields = fields


class PermissionCreateSerializer(serializers.Serializer):
    """Entrada para crear plantillas; la unicidad por banderas la resuelve el catálogo."""
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    can_read = serializers.BooleanField(default=False)
    can_create = serializers.BooleanField(default=False)
    can_update = serializers.BooleanField(default=False)
    can_delete = serializers.BooleanField(default=False)


class RoleSerializer(serializers.ModelSerializer):
    # Lista de IDs de usuarios que tienen este rol (solo lectura)
    assigned_users = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Role
        fields = ("id", "code", "name", "description", "is_active",
                  "created_at", "updated_at", "assigned_users")
        read_only_fields = ("is_active", "created_at", "updated_at")
        extra_kwargs = {
            "description": {"required": False, "allow_blank": True},
        }

    def get_assigned_users(self, obj):
        return list(obj.user_roles_assignments.values_list("user__id", flat=True))

    def validate_code(self, value):
        return value.strip().upper()


class UserRoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserRole
        fields = ('id', 'user', 'role', 'assigned_at')


class RoleFormPermissionSerializer(serializers.ModelSerializer):
    role_code = serializers.CharField(source='role.code', read_only=True)
    form_code = serializers.CharField(source='form.code', read_only=True)
    permission = PermissionSerializer(read_only=True)

    class Meta:
        model = RoleFormPermission
        fields = ('id', 'role', 'role_code', 'form', 'form_code', 'permission', 'assigned_at')


class AssignPermissionSerializer(serializers.Serializer):
    role_id = serializers.IntegerField()
    form_id = serializers.IntegerField()
    permission_id = serializers.IntegerField(allow_null=True, required=False, default=None)
