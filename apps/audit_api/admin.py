from django.contrib import admin
from .models import AuditLog

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'user', 'action', 'source', 'object_id')
    list_filter = ('action', 'source')
    search_fields = ('user__username', 'description', 'object_id')
    ordering = ('-timestamp',)
    readonly_fields = ('timestamp',)
