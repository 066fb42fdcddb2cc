from django.apps import AppConfig


class AppointmentsApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.appointments_api'
