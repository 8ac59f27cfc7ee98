from decimal import Decimal
from unittest import mock

from django.db import DatabaseError, OperationalError
from django.test import TestCase

from .. import lifecycle, verification_ledger
from ..domain_registration import RegistrationVerification
from ..exceptions import NotFoundError, SchemaMissingError, StoreError, ValidationError
from .factories import make_category, make_registration


class VerificationLedgerTests(TestCase):
    def setUp(self):
        self.category = make_category(actual_fee=Decimal("300"), offer_fee=Decimal("0"))
        self.reg = make_registration(self.category)
        lifecycle.approve(self.reg.pk, "admin1")

    def test_verify_then_restore(self):
        row = verification_ledger.verify(self.reg.pk, "checker")
        self.assertTrue(row.verified)
        self.assertEqual(row.verified_by, "checker")
        self.assertIsNotNone(row.verified_at)
        self.assertIsNone(row.restored_by)
        self.assertEqual(verification_ledger.verified_amount(), Decimal("300"))

        row = verification_ledger.restore(self.reg.pk, "supervisor")
        self.assertFalse(row.verified)
        self.assertIsNone(row.verified_by)
        self.assertIsNone(row.verified_at)
        self.assertEqual(row.restored_by, "supervisor")
        self.assertIsNotNone(row.restored_at)
        self.assertEqual(verification_ledger.verified_amount(), Decimal("0"))
        self.assertEqual(RegistrationVerification.objects.filter(registration=self.reg).count(), 1)

    def test_reverify_clears_restore_stamp(self):
        verification_ledger.verify(self.reg.pk, "checker")
        verification_ledger.restore(self.reg.pk, "supervisor")
        row = verification_ledger.verify(self.reg.pk, "checker2")
        self.assertTrue(row.verified)
        self.assertIsNone(row.restored_by)
        self.assertIsNone(row.restored_at)

    def test_verified_amount_limited_to_subset(self):
        other = make_registration(self.category)
        lifecycle.approve(other.pk, "admin1")
        verification_ledger.verify(self.reg.pk, "checker")
        verification_ledger.verify(other.pk, "checker")
        self.assertEqual(verification_ledger.verified_amount(), Decimal("600"))
        self.assertEqual(verification_ledger.verified_amount([other]), Decimal("300"))
        ledger = verification_ledger.ledger_for([self.reg.pk])
        self.assertEqual(list(ledger), [self.reg.pk])

    def test_only_approved_registrations(self):
        pending = make_registration(self.category)
        with self.assertRaises(ValidationError):
            verification_ledger.verify(pending.pk, "checker")
        with self.assertRaises(NotFoundError):
            verification_ledger.verify(999999, "checker")
        with self.assertRaises(ValidationError):
            verification_ledger.verify(self.reg.pk, " ")

    def test_missing_table_reports_schema_missing(self):
        with mock.patch.object(
            RegistrationVerification.objects,
            "update_or_create",
            side_effect=OperationalError("no such table: registration_verifications"),
        ):
            with self.assertRaises(SchemaMissingError):
                verification_ledger.verify(self.reg.pk, "checker")

    def test_other_database_errors_report_store_error(self):
        with mock.patch.object(
            RegistrationVerification.objects, "update_or_create", side_effect=DatabaseError("disk full")
        ):
            with self.assertRaises(StoreError):
                verification_ledger.restore(self.reg.pk, "supervisor")
