from django.contrib.contenttypes.models import ContentType

from .models import AuditLog


def get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def create_audit_log(user, action, description, content_object=None,
                     ip_address=None, user_agent='', source='SYSTEM',
                     extra_data=None):
    """
    Crea una entrada de auditoría. Los usuarios anónimos se registran sin usuario.
    """
    if user is not None and not getattr(user, 'is_authenticated', False):
        user = None

    kwargs = {
        'user': user,
        'action': action,
        'description': description,
        'ip_address': ip_address,
        'user_agent': user_agent or '',
        'source': source,
        'extra_data': extra_data or {},
    }

    if content_object is not None:
        kwargs['content_type'] = ContentType.objects.get_for_model(content_object)
        kwargs['object_id'] = content_object.pk

    return AuditLog.objects.create(**kwargs)
