"""
Audit Logging Mixin for Django REST Framework ViewSets
Logs create/update/destroy through the unified AuditLog
"""

from .utils import create_audit_log, get_client_ip


class AuditLoggingMixin:
    """
    Mixin that logs mutating CRUD operations of a ModelViewSet.
    Set ``audit_source`` on the view to tag the entries.
    """

    audit_source = 'SYSTEM'

    action_map = {
        'create': 'CREATE',
        'update': 'UPDATE',
        'partial_update': 'UPDATE',
        'destroy': 'DELETE',
        'deactivate': 'DEACTIVATE',
    }

    def log_action(self, action, instance):
        request = self.request
        create_audit_log(
            user=request.user,
            action=self.action_map.get(action, 'UPDATE'),
            description=f"{action} {instance.__class__.__name__}: {instance}",
            content_object=instance,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
            source=self.audit_source,
            extra_data={
                'view_action': action,
                'model_name': instance.__class__.__name__,
            }
        )

    def perform_create(self, serializer):
        instance = serializer.save()
        self.log_action('create', instance)
        return instance

    def perform_update(self, serializer):
        instance = serializer.save()
        self.log_action('update', instance)
        return instance

    def perform_destroy(self, instance):
        self.log_action('destroy', instance)
        instance.delete()
