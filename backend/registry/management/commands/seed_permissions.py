from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
import os

from registry.auth_backends import create_admin_user, set_permissions, update_admin_user
from registry.exceptions import RegistryError
from registry.models import AdminUser
from registry.permissions import PERMISSION_CATALOGUE, ensure_permission_catalogue


class Command(BaseCommand):
    help = "Ensure the admin permission catalogue exists; optionally (re)create the main admin with every permission."

    def add_arguments(self, parser):
        parser.add_argument("--with-admin", action="store_true", help="Also create/refresh the main admin account")
        parser.add_argument("--username", default=os.getenv("ADMIN_USER", settings.REGISTRY_BOOTSTRAP_ADMIN))
        parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", None))

    def handle(self, *args, **options):
        created = ensure_permission_catalogue()
        self.stdout.write(self.style.SUCCESS(
            f"Permission catalogue ready ({created} added, {len(PERMISSION_CATALOGUE)} total)."
        ))
        if not options["with_admin"]:
            return

        username = options["username"]
        password = options["password"]
        try:
            admin = AdminUser.objects.filter(username=username).first()
            if admin is None:
                if not password:
                    raise CommandError("A password is required to create the admin (--password or ADMIN_PASSWORD).")
                admin = create_admin_user(username, password, created_by="seed_permissions")
                self.stdout.write(self.style.SUCCESS(f'Created admin "{username}".'))
            else:
                update_admin_user(admin, is_active=True, password=password or None)
                self.stdout.write(f'Admin "{username}" already exists; refreshed.')
            set_permissions(admin, PERMISSION_CATALOGUE.keys(), granted_by="seed_permissions")
        except RegistryError as e:
            raise CommandError(f"Error seeding admin: {e.detail}")
        self.stdout.write(self.style.SUCCESS(f'Granted all permissions to "{username}".'))
