"""
Filtros de la bitácora.

Rango de fechas con ``date_from`` / ``date_to`` (AAAA-MM-DD, inclusivo).
Una fecha mal formada es un 400, no un error del servidor.
"""

import django_filters

from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(
        field_name='timestamp',
        lookup_expr='date__gte',
        label='Desde (AAAA-MM-DD)',
    )
    date_to = django_filters.DateFilter(
        field_name='timestamp',
        lookup_expr='date__lte',
        label='Hasta (AAAA-MM-DD)',
    )

    class Meta:
        model = AuditLog
        fields = ['action', 'source', 'user', 'content_type', 'object_id']
