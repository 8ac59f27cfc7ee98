"""Insert the admin permission catalogue."""
from django.db import migrations

from registry.permissions import PERMISSION_CATALOGUE


def seed_permissions(apps, schema_editor):
    AdminPermission = apps.get_model('registry', 'AdminPermission')
    for name, description in PERMISSION_CATALOGUE.items():
        AdminPermission.objects.get_or_create(name=name, defaults={'description': description, 'is_active': True})


def noop(apps, schema_editor):
    return


class Migration(migrations.Migration):

    dependencies = [
        ('registry', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_permissions, noop),
    ]
