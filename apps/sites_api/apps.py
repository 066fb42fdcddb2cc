from django.apps import AppConfig


class SitesApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.sites_api'
