from django.apps import AppConfig


class ClientsApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.clients_api'
