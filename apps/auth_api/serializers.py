from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.db import transaction

from apps.roles_api.models import Role, UserRole
from .tabs import clean_tabs
from apps.utils.exceptions import ValidationError

User = get_user_model()


class RoleBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = ['id', 'code', 'name', 'is_active']


class UserListSerializer(serializers.ModelSerializer):
    roles = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'roles', 'allowed_tabs',
                  'is_active', 'date_joined', 'last_login']

    def get_roles(self, obj):
        roles = Role.objects.filter(user_roles_assignments__user=obj).order_by('id')
        return RoleBriefSerializer(roles, many=True).data


class EmployeeUserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8, required=False)
    role_ids = serializers.ListField(
        child=serializers.IntegerField(), write_only=True, required=False
    )
    allowed_tabs = serializers.ListField(
        child=serializers.CharField(), required=False
    )

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'password', 'role_ids', 'allowed_tabs']

    def validate_allowed_tabs(self, value):
        try:
            return clean_tabs(value)
        except ValidationError as exc:
            raise serializers.ValidationError(exc.detail)

    def validate_role_ids(self, value):
        ids = list(dict.fromkeys(value))
        found = set(Role.objects.filter(pk__in=ids, is_active=True).values_list('id', flat=True))
        missing = [role_id for role_id in ids if role_id not in found]
        if missing:
            raise serializers.ValidationError(f"Roles inexistentes o inactivos: {missing}")
        return ids

    def validate(self, attrs):
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'La contraseña es obligatoria.'})
        return attrs

    def _set_roles(self, user, role_ids):
        UserRole.objects.filter(user=user).exclude(role_id__in=role_ids).delete()
        for role_id in role_ids:
            UserRole.objects.get_or_create(user=user, role_id=role_id)

    @transaction.atomic
    def create(self, validated_data):
        role_ids = validated_data.pop('role_ids', [])
        user = User.objects.create_user(**validated_data)
        self._set_roles(user, role_ids)
        return user

    @transaction.atomic
    def update(self, instance, validated_data):
        role_ids = validated_data.pop('role_ids', None)
        password = validated_data.pop('password', None)
        for attr, val in validated_data.items():
            setattr(instance, attr, val)
        if password:
            instance.set_password(password)
        instance.save()
        if role_ids is not None:
            self._set_roles(instance, role_ids)
        return instance

    def to_representation(self, instance):
        return UserListSerializer(instance, context=self.context).data


class UserTabsSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source='id', read_only=True)

    class Meta:
        model = User
        fields = ['user_id', 'username', 'email', 'allowed_tabs']
        read_only_fields = ['username', 'email', 'allowed_tabs']


class UpdateUserTabsSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    allowed_tabs = serializers.ListField(child=serializers.CharField(), allow_empty=True)
