from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import AuditLog

User = get_user_model()


class AuditActorSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'full_name']


class AuditLogSerializer(serializers.ModelSerializer):
    """Entrada de bitácora; ``user`` es nulo para acciones del portal público."""

    user = AuditActorSerializer(read_only=True)
    action_display = serializers.CharField(source='get_action_display', read_only=True)
    source_display = serializers.CharField(source='get_source_display', read_only=True)
    model = serializers.SerializerMethodField()
    target = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            'id', 'timestamp', 'user', 'action', 'action_display', 'source', 'source_display',
            'description', 'model', 'object_id', 'target', 'ip_address', 'user_agent', 'extra_data',
        ]
        read_only_fields = fields

    def get_model(self, obj):
        return obj.content_type.model if obj.content_type_id else None

    def get_target(self, obj):
        # las citas purgadas ya no existen; la bitácora conserva el ticket en extra_data
        if not obj.content_type_id or not obj.object_id or obj.content_type.model_class() is None:
            return None
        target = obj.content_object
        return str(target) if target is not None else None
