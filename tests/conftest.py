"""
Pytest configuration and fixtures for the cafe POS backend.
"""

import dataclasses
from decimal import Decimal

from django.apps import apps

import pytest


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Keep uploaded receipts out of the project tree."""
    settings.MEDIA_ROOT = tmp_path / "media"
    return settings.MEDIA_ROOT


@pytest.fixture
def pos_config():
    """
    Swap the runtime POS config for the duration of a test.

    Call the returned function with the fields to override.
    """
    core_config = apps.get_app_config("core")
    original = core_config.pos_config

    def override(**changes):
        core_config.pos_config = dataclasses.replace(original, **changes)
        return core_config.pos_config

    yield override
    core_config.pos_config = original


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_user(
        email="admin@cafe.com", password="testpass123", full_name="Admin", role="admin"
    )


@pytest.fixture
def manager_user(django_user_model):
    return django_user_model.objects.create_user(
        email="manager@cafe.com", password="testpass123", full_name="Manager", role="manager"
    )


@pytest.fixture
def cashier_user(django_user_model):
    return django_user_model.objects.create_user(
        email="cashier@cafe.com", password="testpass123", full_name="Cashier", role="cashier"
    )


@pytest.fixture
def authenticated_client(api_client, admin_user):
    """
    Fixture for API client authenticated as an admin.
    """
    api_client.force_authenticate(user=admin_user)
    return api_client, admin_user


@pytest.fixture
def cashier_client(api_client, cashier_user):
    api_client.force_authenticate(user=cashier_user)
    return api_client, cashier_user


@pytest.fixture
def product():
    from inventory.models import Category, Product

    category = Category.objects.create(name="Coffee")
    return Product.objects.create(
        category=category, name="Latte", price=Decimal("3.50"), is_online=True, stock_quantity=20
    )


@pytest.fixture
def make_sale(admin_user):
    """Factory for sales with a given primary key."""
    from orders.models import Sale

    def make(pk=None, **fields):
        fields.setdefault("created_by", admin_user)
        if pk is not None:
            fields["id"] = pk
        return Sale.objects.create(**fields)

    return make
