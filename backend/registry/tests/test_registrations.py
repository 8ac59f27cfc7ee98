from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from .. import lifecycle
from ..domain_registration import RegistrationStatus
from ..exceptions import ValidationError
from ..registrations import (
    CustomerIdService,
    edit_registration,
    find_by_mobile_or_customer_id,
    search_registrations,
    submit_registration,
)
from .factories import make_category, make_panchayath, make_registration


def _form(category, **overrides):
    data = {
        "full_name": "Latha K",
        "mobile_number": "9847012345",
        "address": "Near temple",
        "ward": "7",
        "category_id": category.pk,
    }
    data.update(overrides)
    return data


@override_settings(REGISTRY_CUSTOMER_ID_PREFIX="ESP")
class SubmitRegistrationTests(TestCase):
    def setUp(self):
        self.category = make_category(actual_fee=Decimal("250"), offer_fee=Decimal("199"))

    def test_customer_ids_follow_year_sequence(self):
        when = datetime(2025, 3, 1, tzinfo=dt_timezone.utc)
        self.assertEqual(CustomerIdService.next_id(when), "ESP2500001")
        make_registration(self.category, customer_id="ESP2500041")
        self.assertEqual(CustomerIdService.next_id(when), "ESP2500042")
        self.assertEqual(CustomerIdService.next_id(datetime(2026, 1, 1, tzinfo=dt_timezone.utc)), "ESP2600001")

    def test_submission_is_pending_with_fee_snapshot(self):
        panchayath = make_panchayath()
        reg = submit_registration(_form(self.category, panchayath_id=panchayath.pk, mobile_number="98470 12345"))
        self.assertEqual(reg.status, RegistrationStatus.PENDING)
        self.assertEqual(reg.fee, Decimal("199"))
        self.assertEqual(reg.mobile_number, "9847012345")
        self.assertTrue(reg.customer_id.startswith("ESP"))
        self.assertEqual(reg.panchayath, panchayath)
        self.category.offer_fee = Decimal("99")
        self.category.save()
        reg.refresh_from_db()
        self.assertEqual(reg.fee, Decimal("199"))

    def test_sequential_submissions_get_distinct_ids(self):
        first = submit_registration(_form(self.category))
        second = submit_registration(_form(self.category, mobile_number="9847099999"))
        self.assertNotEqual(first.customer_id, second.customer_id)

    def test_supplied_customer_id_is_kept_and_unique(self):
        reg = submit_registration(_form(self.category, customer_id="LEGACY001"))
        self.assertEqual(reg.customer_id, "LEGACY001")
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, customer_id="LEGACY001"))

    def test_validation(self):
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, full_name="  "))
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, mobile_number="12345"))
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, category_id=None))
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, category_id=999999))
        closed = make_category(is_active=False)
        with self.assertRaises(ValidationError):
            submit_registration(_form(closed))
        with self.assertRaises(ValidationError):
            submit_registration(_form(self.category, panchayath_id=999999))


class LookupAndEditTests(TestCase):
    def setUp(self):
        self.category = make_category(actual_fee=Decimal("250"), offer_fee=Decimal("0"))

    def test_lookup_by_mobile_or_customer_id(self):
        reg = make_registration(self.category, mobile_number="9000000001", customer_id="ESP2500007")
        self.assertEqual(find_by_mobile_or_customer_id("9000000001"), reg)
        self.assertEqual(find_by_mobile_or_customer_id(" esp2500007 "), reg)
        self.assertIsNone(find_by_mobile_or_customer_id("nothing-here"))
        with self.assertRaises(ValidationError):
            find_by_mobile_or_customer_id("  ")

    def test_lookup_returns_newest_match(self):
        make_registration(self.category, mobile_number="9000000002")
        newer = make_registration(self.category, mobile_number="9000000002")
        self.assertEqual(find_by_mobile_or_customer_id("9000000002"), newer)

    def test_category_change_resnapshots_fee(self):
        reg = make_registration(self.category)
        target = make_category(actual_fee=Decimal("600"), offer_fee=Decimal("450"))
        edited = edit_registration(reg, {"category_id": target.pk, "full_name": "New Name"})
        self.assertEqual(edited.category, target)
        self.assertEqual(edited.fee, Decimal("450"))
        self.assertEqual(edited.full_name, "New Name")
        self.assertEqual(edited.status, RegistrationStatus.PENDING)

    def test_explicit_fee_wins_over_category(self):
        reg = make_registration(self.category)
        target = make_category(actual_fee=Decimal("600"))
        edited = edit_registration(reg.pk, {"category_id": target.pk, "fee": Decimal("10")})
        self.assertEqual(edited.fee, Decimal("10"))

    def test_approved_registration_keeps_expiry(self):
        reg = make_registration(self.category)
        approved = lifecycle.approve(reg.pk, "admin1")
        with self.assertRaises(ValidationError):
            edit_registration(reg.pk, {"expiry_date": None})
        reg.refresh_from_db()
        self.assertEqual(reg.expiry_date, approved.expiry_date)
        later = approved.expiry_date + timedelta(days=10)
        self.assertEqual(edit_registration(reg.pk, {"expiry_date": later}).expiry_date, later)

    def test_pending_registration_expiry_can_be_cleared(self):
        reg = make_registration(self.category, expiry_date=timezone.now())
        self.assertIsNone(edit_registration(reg, {"expiry_date": None}).expiry_date)

    def test_edit_validation(self):
        reg = make_registration(self.category)
        with self.assertRaises(ValidationError):
            edit_registration(reg, {"mobile_number": "abc"})
        with self.assertRaises(ValidationError):
            edit_registration(reg, {"full_name": ""})
        with self.assertRaises(ValidationError):
            edit_registration(reg, {"fee": Decimal("-1")})


class SearchRegistrationTests(TestCase):
    def setUp(self):
        self.category = make_category(expiry_days=30)
        self.other = make_category()

    def test_text_status_and_category_filters(self):
        first = make_registration(self.category, full_name="Anitha Ravi")
        second = make_registration(self.other, full_name="Babu Raj")
        lifecycle.approve(second.pk, "admin1")
        self.assertEqual(search_registrations(q="anitha"), [first])
        self.assertEqual(search_registrations(status="approved"), [second])
        self.assertEqual(search_registrations(category_id=self.category.pk), [first])
        self.assertEqual(len(search_registrations(status="all")), 2)
        with self.assertRaises(ValidationError):
            search_registrations(status="archived")

    def test_expiry_window_limits_to_pending(self):
        now = timezone.now()
        expired = make_registration(self.category, expiry_date=now - timedelta(days=2))
        soon = make_registration(self.category, expiry_date=now + timedelta(days=2, hours=1))
        make_registration(self.category, expiry_date=now + timedelta(days=20))
        done = make_registration(self.category, expiry_date=now - timedelta(days=2))
        lifecycle.approve(done.pk, "admin1")
        self.assertEqual(search_registrations(expiry_within=0, now=now), [expired])
        self.assertEqual(search_registrations(expiry_within=3, now=now), [soon])
