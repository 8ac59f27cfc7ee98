from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace
from unittest import mock

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from .. import lifecycle
from ..domain_registration import Registration, RegistrationStatus
from ..exceptions import ConflictError, NotFoundError, ValidationError
from .factories import make_category, make_registration


def _utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


@override_settings(REGISTRY_EXPIRING_SOON_DAYS=3, REGISTRY_DEFAULT_EXPIRY_DAYS=30)
class ExpiryClassificationTests(SimpleTestCase):
    def _category(self, cid=1, days=30):
        return SimpleNamespace(id=cid, expiry_days=days)

    def _reg(self, *, created, expiry=None, status="pending", category_id=1, name="r"):
        return SimpleNamespace(
            full_name=name,
            status=status,
            created_at=created,
            expiry_date=expiry,
            category_id=category_id,
        )

    def test_effective_expiry_falls_back_to_created_at(self):
        reg = self._reg(created=_utc(2024, 1, 1))
        self.assertEqual(lifecycle.effective_expiry(reg, self._category()), _utc(2024, 1, 31))

    def test_stored_expiry_wins(self):
        reg = self._reg(created=_utc(2024, 1, 1), expiry=_utc(2024, 6, 1))
        self.assertEqual(lifecycle.effective_expiry(reg, self._category()), _utc(2024, 6, 1))

    def test_missing_category_uses_default_window(self):
        reg = self._reg(created=_utc(2024, 1, 1))
        self.assertEqual(lifecycle.effective_expiry(reg, None), _utc(2024, 1, 31))

    def test_days_remaining_rounds_up(self):
        now = _utc(2024, 1, 1, 12)
        self.assertEqual(lifecycle.days_remaining(now + timedelta(hours=1), now), 1)
        self.assertEqual(lifecycle.days_remaining(now + timedelta(days=2, hours=1), now), 3)
        self.assertEqual(lifecycle.days_remaining(now, now), 0)
        self.assertEqual(lifecycle.days_remaining(now - timedelta(hours=5), now), 0)
        self.assertEqual(lifecycle.days_remaining(now - timedelta(days=1, hours=1), now), -1)

    def test_buckets_pending_only_and_sorted(self):
        now = _utc(2024, 2, 1)
        cats = [self._category(1, 30)]
        regs = [
            self._reg(created=_utc(2024, 1, 1), name="expired"),  # expired 2024-01-31
            self._reg(created=_utc(2024, 1, 1), expiry=_utc(2024, 2, 3), name="soon-late"),
            self._reg(created=_utc(2024, 1, 1), expiry=_utc(2024, 2, 2), name="soon-early"),
            self._reg(created=_utc(2024, 1, 1), expiry=_utc(2024, 1, 20), name="older-expired"),
            self._reg(created=_utc(2024, 1, 1), expiry=_utc(2024, 3, 1), name="far"),
            self._reg(created=_utc(2024, 1, 1), status="approved", name="approved"),
            self._reg(created=_utc(2024, 1, 1), status="rejected", name="rejected"),
        ]
        buckets = lifecycle.classify_by_expiry(regs, cats, now)
        self.assertEqual([a.registration.full_name for a in buckets.expired], ["older-expired", "expired"])
        self.assertEqual([a.registration.full_name for a in buckets.expiring_soon], ["soon-early", "soon-late"])
        self.assertEqual(buckets.total, 4)
        self.assertEqual(buckets.expiring_soon[0].days_remaining, 1)

    def test_window_boundary_days(self):
        now = _utc(2024, 2, 1)
        cats = {1: self._category(1, 30)}
        three = self._reg(created=now, expiry=now + timedelta(days=3))
        four = self._reg(created=now, expiry=now + timedelta(days=4))
        buckets = lifecycle.classify_by_expiry([three, four], cats, now)
        self.assertEqual([a.registration for a in buckets.expiring_soon], [three])

    def test_matches_expiry_window(self):
        now = _utc(2024, 2, 1)
        cat = self._category()
        expired = self._reg(created=_utc(2023, 12, 1))
        soon = self._reg(created=now, expiry=now + timedelta(days=2))
        approved = self._reg(created=_utc(2023, 12, 1), status="approved")
        self.assertTrue(lifecycle.matches_expiry_window(expired, cat, 0, now))
        self.assertFalse(lifecycle.matches_expiry_window(soon, cat, 0, now))
        self.assertTrue(lifecycle.matches_expiry_window(soon, cat, 3, now))
        self.assertFalse(lifecycle.matches_expiry_window(soon, cat, 1, now))
        self.assertFalse(lifecycle.matches_expiry_window(approved, cat, 0, now))


class LifecycleTransitionTests(TestCase):
    def setUp(self):
        cache.clear()
        self.category = make_category(expiry_days=45)

    def test_approve_stamps_and_sets_expiry(self):
        reg = make_registration(self.category)
        now = timezone.now()
        approved = lifecycle.approve(reg.pk, "admin1", now=now)
        self.assertEqual(approved.status, RegistrationStatus.APPROVED)
        self.assertEqual(approved.approved_by, "admin1")
        self.assertEqual(approved.approved_date, now)
        self.assertEqual(approved.expiry_date, now + timedelta(days=45))

    def test_approve_keeps_stored_expiry(self):
        stored = timezone.now() + timedelta(days=5)
        reg = make_registration(self.category, expiry_date=stored)
        approved = lifecycle.approve(reg.pk, "admin1")
        self.assertEqual(approved.expiry_date, stored)

    def test_approve_requires_actor(self):
        reg = make_registration(self.category)
        with self.assertRaises(ValidationError):
            lifecycle.approve(reg.pk, "  ")
        reg.refresh_from_db()
        self.assertEqual(reg.status, RegistrationStatus.PENDING)

    def test_approve_missing_registration(self):
        with self.assertRaises(NotFoundError):
            lifecycle.approve(999999, "admin1")

    def test_approve_non_pending_is_refused(self):
        reg = make_registration(self.category)
        lifecycle.reject(reg.pk, "admin1")
        with self.assertRaises(ValidationError):
            lifecycle.approve(reg.pk, "admin1")

    def test_reject_then_restore(self):
        reg = make_registration(self.category)
        rejected = lifecycle.reject(reg.pk, "admin1")
        self.assertEqual(rejected.status, RegistrationStatus.REJECTED)
        restored = lifecycle.restore_to_pending(reg.pk, "admin1")
        self.assertEqual(restored.status, RegistrationStatus.PENDING)
        self.assertIsNone(restored.approved_by)

    def test_restore_clears_approval_but_keeps_expiry(self):
        reg = make_registration(self.category)
        approved = lifecycle.approve(reg.pk, "admin1")
        restored = lifecycle.restore_to_pending(reg.pk, "admin2")
        self.assertEqual(restored.status, RegistrationStatus.PENDING)
        self.assertIsNone(restored.approved_date)
        self.assertIsNone(restored.approved_by)
        self.assertEqual(restored.expiry_date, approved.expiry_date)

    def test_restore_pending_is_refused(self):
        reg = make_registration(self.category)
        with self.assertRaises(ValidationError):
            lifecycle.restore_to_pending(reg.pk)

    def test_reject_approved_is_refused(self):
        reg = make_registration(self.category)
        lifecycle.approve(reg.pk, "admin1")
        with self.assertRaises(ValidationError):
            lifecycle.reject(reg.pk, "admin1")

    def test_concurrent_change_raises_conflict(self):
        reg = make_registration(self.category)
        stale = Registration.objects.get(pk=reg.pk)
        lifecycle.reject(reg.pk, "other-admin")
        with mock.patch.object(lifecycle, "_load", return_value=stale):
            with self.assertRaises(ConflictError):
                lifecycle.approve(reg.pk, "admin1")
        reg.refresh_from_db()
        self.assertEqual(reg.status, RegistrationStatus.REJECTED)
        self.assertIsNone(reg.approved_by)

    def test_bulk_approve_shares_one_timestamp(self):
        other = make_category(expiry_days=10)
        stored = timezone.now() + timedelta(days=2)
        regs = [
            make_registration(self.category),
            make_registration(other),
            make_registration(self.category, expiry_date=stored),
        ]
        now = timezone.now()
        count = lifecycle.bulk_approve([r.pk for r in regs], "admin1", now=now)
        self.assertEqual(count, 3)
        rows = {r.pk: r for r in Registration.objects.filter(pk__in=[r.pk for r in regs])}
        for row in rows.values():
            self.assertEqual(row.status, RegistrationStatus.APPROVED)
            self.assertEqual(row.approved_date, now)
            self.assertEqual(row.approved_by, "admin1")
        self.assertEqual(rows[regs[0].pk].expiry_date, now + timedelta(days=45))
        self.assertEqual(rows[regs[1].pk].expiry_date, now + timedelta(days=10))
        self.assertEqual(rows[regs[2].pk].expiry_date, stored)

    def test_bulk_approve_rejects_whole_batch(self):
        pending = make_registration(self.category)
        done = make_registration(self.category)
        lifecycle.approve(done.pk, "admin1")
        with self.assertRaises(ValidationError):
            lifecycle.bulk_approve([pending.pk, done.pk], "admin2")
        pending.refresh_from_db()
        self.assertEqual(pending.status, RegistrationStatus.PENDING)
        with self.assertRaises(ValidationError):
            lifecycle.bulk_approve([pending.pk, 999999], "admin2")
        with self.assertRaises(ValidationError):
            lifecycle.bulk_approve([], "admin2")
        with self.assertRaises(ValidationError):
            lifecycle.bulk_approve(["abc"], "admin2")

    def test_transitions_invalidate_cached_alerts(self):
        reg = make_registration(self.category, expiry_date=timezone.now() - timedelta(days=1))
        self.assertEqual(len(lifecycle.expiry_alerts().expired), 1)
        self.assertIsNotNone(cache.get(lifecycle.EXPIRY_ALERTS_CACHE_KEY))
        lifecycle.approve(reg.pk, "admin1")
        self.assertIsNone(cache.get(lifecycle.EXPIRY_ALERTS_CACHE_KEY))
        self.assertEqual(lifecycle.expiry_alerts().total, 0)
