from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone

from ..domain_admin import AdminUser
from ..permissions import PERMISSION_CATALOGUE
from .factories import make_registration


class ManagementCommandTests(TestCase):
    @override_settings(REGISTRY_BOOTSTRAP_ADMIN="eva")
    def test_seed_permissions_with_admin(self):
        out = StringIO()
        call_command("seed_permissions", "--with-admin", "--username", "eva", "--password", "boot-pass-1", stdout=out)
        eva = AdminUser.objects.get(username="eva")
        self.assertEqual(eva.permission_names(), frozenset(PERMISSION_CATALOGUE))
        self.assertIn("Granted all permissions", out.getvalue())

    def test_seed_admin_needs_password(self):
        with self.assertRaises(CommandError):
            call_command("seed_permissions", "--with-admin", "--username", "nobody", "--password", "", stdout=StringIO())

    def test_create_admin_with_permissions(self):
        call_command(
            "create_admin", "--username", "clerk", "--password", "clerk-pass-1",
            "--permission", "users_read", stdout=StringIO(),
        )
        self.assertEqual(AdminUser.objects.get(username="clerk").permission_names(), frozenset({"users_read"}))
        with self.assertRaises(CommandError):
            call_command(
                "create_admin", "--username", "clerk", "--password", "x",
                "--permission", "no_such_permission", stdout=StringIO(),
            )

    def test_expiry_report_lists_buckets(self):
        make_registration(full_name="Overdue Person", expiry_date=timezone.now() - timedelta(days=2))
        out = StringIO()
        call_command("expiry_report", stdout=out)
        self.assertIn("Expired (1)", out.getvalue())
        self.assertIn("Overdue Person", out.getvalue())
