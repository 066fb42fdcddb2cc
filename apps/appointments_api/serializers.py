from rest_framework import serializers

from apps.clients_api.serializers import CustomerSerializer, PublicCustomerSerializer
from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    customer = CustomerSerializer(read_only=True)
    site_name = serializers.CharField(source='site.name', read_only=True)
    appointment_type_name = serializers.CharField(source='appointment_type.name', read_only=True)
    estimated_minutes = serializers.IntegerField(source='appointment_type.estimated_minutes', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    time = serializers.TimeField(format='%H:%M', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'ticket_number', 'customer', 'site', 'site_name', 'appointment_type',
            'appointment_type_name', 'estimated_minutes', 'date', 'time', 'status',
            'status_display', 'notes', 'assigned_technician', 'technician_notes',
            'cancellation_reason', 'completed_at', 'cancelled_at', 'created_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PublicAppointmentSerializer(serializers.ModelSerializer):
    """Vista de la cita para el portal público, sin datos internos del operador."""
    customer = PublicCustomerSerializer(read_only=True)
    site_name = serializers.CharField(source='site.name', read_only=True)
    site_address = serializers.CharField(source='site.address', read_only=True)
    appointment_type_name = serializers.CharField(source='appointment_type.name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    time = serializers.TimeField(format='%H:%M', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'ticket_number', 'customer', 'site_name', 'site_address', 'appointment_type_name',
            'date', 'time', 'status', 'status_display', 'notes', 'cancellation_reason', 'created_at',
        ]
        read_only_fields = fields


# Las fechas y horas se reciben como texto; los servicios las validan
class AppointmentCreateSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    site_id = serializers.IntegerField()
    appointment_type_id = serializers.IntegerField()
    date = serializers.CharField()
    time = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentUpdateSerializer(serializers.Serializer):
    site_id = serializers.IntegerField(required=False)
    appointment_type_id = serializers.IntegerField(required=False)
    date = serializers.CharField(required=False)
    time = serializers.CharField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentOverrideSerializer(AppointmentUpdateSerializer):
    justification = serializers.CharField()
    assigned_technician = serializers.CharField(required=False, allow_blank=True)
    technician_notes = serializers.CharField(required=False, allow_blank=True)
    cancellation_reason = serializers.CharField(required=False)


class CompleteSerializer(serializers.Serializer):
    assigned_technician = serializers.CharField(allow_blank=True)
    technician_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True)


class NotAttendedSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class PublicBookingSerializer(serializers.Serializer):
    customer_number = serializers.CharField()
    site_id = serializers.IntegerField()
    appointment_type_id = serializers.IntegerField()
    date = serializers.CharField()
    time = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class PublicCancelSerializer(serializers.Serializer):
    customer_number = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)
