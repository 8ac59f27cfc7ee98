from django.core.management.base import BaseCommand, CommandError
import os
import getpass

from registry.auth_backends import create_admin_user, set_permissions, update_admin_user
from registry.exceptions import RegistryError
from registry.models import AdminUser


class Command(BaseCommand):
    help = "Create or update a portal admin user from env vars or command args."

    def add_arguments(self, parser):
        parser.add_argument("--username", default=os.getenv("ADMIN_USER", "admin"))
        parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", ""))
        parser.add_argument("--full-name", default="")
        parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", None))
        parser.add_argument(
            "--permission",
            action="append",
            dest="permissions",
            help="Permission name to grant (repeatable). Replaces existing grants when given.",
        )

    def _prompt_password(self):
        try:
            password = getpass.getpass("Admin password (will not echo): ")
            confirm = getpass.getpass("Confirm password: ")
        except (EOFError, KeyboardInterrupt):
            raise CommandError("Password input cancelled.")
        if password != confirm:
            raise CommandError("Passwords do not match.")
        if len(password) < 8:
            raise CommandError("Password must be at least 8 characters.")
        return password

    def handle(self, *args, **options):
        username = options["username"]
        password = options["password"] or self._prompt_password()
        try:
            admin = AdminUser.objects.filter(username=username).first()
            if admin:
                admin = update_admin_user(
                    admin,
                    email=options["email"] or None,
                    full_name=options["full_name"] or None,
                    is_active=True,
                    password=password,
                )
                if options["permissions"] is not None:
                    set_permissions(admin, options["permissions"], granted_by="create_admin")
                self.stdout.write(self.style.SUCCESS(f'Updated admin "{username}".'))
            else:
                create_admin_user(
                    username,
                    password,
                    email=options["email"],
                    full_name=options["full_name"],
                    permissions=options["permissions"],
                    created_by="create_admin",
                )
                self.stdout.write(self.style.SUCCESS(f'Created admin "{username}".'))
        except RegistryError as e:
            raise CommandError(f"Error creating/updating admin: {e.detail}")
