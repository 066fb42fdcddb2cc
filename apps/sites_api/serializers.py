from rest_framework import serializers
from .models import Site, AppointmentType, AvailableHour


class SiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Site
        fields = ['id', 'code', 'name', 'address', 'phone', 'city', 'department',
                  'is_primary', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'is_active', 'created_at', 'updated_at']

    def validate_code(self, value):
        return value.strip().upper()


class AppointmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'name', 'description', 'icon', 'estimated_minutes',
                  'requires_documentation', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'is_active', 'created_at', 'updated_at']

    def validate_estimated_minutes(self, value):
        if not 1 <= value <= 480:
            raise serializers.ValidationError("La duración estimada debe estar entre 1 y 480 minutos.")
        return value


class AvailableHourSerializer(serializers.ModelSerializer):
    site_name = serializers.CharField(source='site.name', read_only=True)
    appointment_type_name = serializers.CharField(source='appointment_type.name', read_only=True, default=None)

    class Meta:
        model = AvailableHour
        fields = ['id', 'time', 'site', 'site_name', 'appointment_type',
                  'appointment_type_name', 'is_active', 'created_at']
        read_only_fields = ['id', 'is_active', 'created_at']

    def validate_time(self, value):
        return value.replace(second=0, microsecond=0)


class PublicSiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Site
        fields = ['id', 'code', 'name', 'address', 'phone', 'city', 'is_primary']


class PublicAppointmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'name', 'description', 'icon', 'estimated_minutes', 'requires_documentation']
