"""
Shared fixtures for the marketplace test suite.
"""

from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.models import Category, Negotiation, Service

User = get_user_model()

_seq = count(1)


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def make_user(db):
    def _make_user(role=User.Role.CUSTOMER, email=None, password='TestPass123!', **extra):
        n = next(_seq)
        email = email or f'{role.lower()}{n}@test.com'
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=extra.pop('name', f'{role.title()} {n}'),
            role=role,
            **extra
        )
    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(User.Role.CUSTOMER)


@pytest.fixture
def other_customer(make_user):
    return make_user(User.Role.CUSTOMER)


@pytest.fixture
def vendor(make_user):
    return make_user(User.Role.VENDOR)


@pytest.fixture
def other_vendor(make_user):
    return make_user(User.Role.VENDOR)


@pytest.fixture
def admin_user(make_user):
    return make_user(User.Role.ADMIN)


@pytest.fixture
def category(db):
    return Category.objects.create(name='Moving', icon='truck')


@pytest.fixture
def make_service(db, category):
    def _make_service(vendor, **fields):
        defaults = {
            'category': category,
            'service_title': 'Apartment Moving',
            'description': 'Two movers and a van for local moves.',
            'price': Decimal('150.00'),
            'phone': '+1 555 123 4567',
            'city': 'Springfield',
        }
        defaults.update(fields)
        return Service.objects.create(vendor=vendor, **defaults)
    return _make_service


@pytest.fixture
def service(make_service, vendor):
    return make_service(vendor)


@pytest.fixture
def accepted_negotiation(db):
    """Return a helper that records an ACCEPTED negotiation for (customer, service)."""
    def _accept(customer, service, offer_price=Decimal('120.00')):
        return Negotiation.objects.create(
            service=service,
            customer=customer,
            offer_price=offer_price,
            status=Negotiation.Status.ACCEPTED
        )
    return _accept


@pytest.fixture
def auth_client():
    """Return a helper that builds an APIClient with a bearer token for a user."""
    def _auth_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return client
    return _auth_client
