from django.contrib import admin
from .models import Site, AppointmentType, AvailableHour


class AvailableHourInline(admin.TabularInline):
    model = AvailableHour
    extra = 0
    fields = ('time', 'appointment_type', 'is_active')


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'city', 'is_primary', 'is_active')
    list_filter = ('is_active', 'is_primary', 'city')
    search_fields = ('code', 'name', 'city')
    inlines = [AvailableHourInline]


@admin.register(AppointmentType)
class AppointmentTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'estimated_minutes', 'requires_documentation', 'is_active')
    list_filter = ('is_active', 'requires_documentation')


@admin.register(AvailableHour)
class AvailableHourAdmin(admin.ModelAdmin):
    list_display = ('site', 'time', 'appointment_type', 'is_active')
    list_filter = ('site', 'is_active')
