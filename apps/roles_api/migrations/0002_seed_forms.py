from django.db import migrations

from apps.roles_api.permission_config import FORMS


def create_forms(apps, schema_editor):
    Form = apps.get_model('roles_api', 'Form')
    for code, display_name in FORMS:
        Form.objects.update_or_create(code=code, defaults={'display_name': display_name})


class Migration(migrations.Migration):

    dependencies = [
        ('roles_api', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_forms, migrations.RunPython.noop),
    ]
