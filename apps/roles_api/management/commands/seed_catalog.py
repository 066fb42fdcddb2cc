from django.core.management.base import BaseCommand
from apps.roles_api.catalog import sync_catalog

class Command(BaseCommand):
    help = "Crea el catálogo de formularios, las plantillas base y los roles ADMIN / OPERATOR"

    def handle(self, *args, **options):
        for role in sync_catalog():
            assigned = role.form_permissions.exclude(permission__isnull=True).count()
            self.stdout.write(self.style.SUCCESS(f"Rol {role.code} listo con {assigned} formularios asignados"))

        self.stdout.write(self.style.SUCCESS("Catálogo sincronizado correctamente"))
