from django.contrib import admin
from .models import Appointment

@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('ticket_number', 'customer', 'site', 'date', 'time', 'status')
    list_filter = ('status', 'site', 'date')
    search_fields = ('ticket_number', 'customer__customer_number', 'customer__full_name')
    # los cambios de estado pasan por AppointmentLifecycle
    readonly_fields = ('ticket_number', 'status', 'cancellation_reason', 'completed_at',
                       'cancelled_at', 'created_by', 'created_at', 'updated_at')

    def has_delete_permission(self, request, obj=None):
        return False
