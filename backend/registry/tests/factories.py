"""Small builders for test rows."""
from decimal import Decimal
from itertools import count

from ..auth_backends import create_admin_user
from ..models import Category, Panchayath, Registration

_seq = count(1)


def make_category(**overrides):
    n = next(_seq)
    values = {
        "name_english": f"Category {n}",
        "name_malayalam": f"വിഭാഗം {n}",
        "actual_fee": Decimal("200.00"),
        "offer_fee": Decimal("150.00"),
        "expiry_days": 30,
    }
    values.update(overrides)
    return Category.objects.create(**values)


def make_panchayath(**overrides):
    n = next(_seq)
    values = {"name": f"Panchayath {n}", "district": "Malappuram"}
    values.update(overrides)
    return Panchayath.objects.create(**values)


def make_registration(category=None, **overrides):
    n = next(_seq)
    category = category or make_category()
    values = {
        "customer_id": f"TEST{n:05d}",
        "full_name": f"Applicant {n}",
        "mobile_number": f"98{n:08d}",
        "address": "Main Road",
        "ward": "5",
        "category": category,
        "fee": category.charged_fee,
    }
    values.update(overrides)
    return Registration.objects.create(**values)


def make_admin(username="staff", password="s3cret-pass", permissions=()):
    return create_admin_user(username, password, permissions=list(permissions), created_by="tests")
