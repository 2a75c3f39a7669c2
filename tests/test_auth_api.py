"""
Tests for signup, login, token refresh, logout and /me endpoints.
"""

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import RefreshToken

User = get_user_model()


@pytest.fixture
def signup_payload():
    return {
        'email': 'New.User@Example.com',
        'password': 'secret123',
        'name': 'New User',
        'phone': '+1 555 000 1234',
        'city': 'Springfield',
    }


# ============================================================================
# 1. SIGNUP
# ============================================================================

@pytest.mark.django_db
class TestSignup:

    def test_signup_creates_customer_and_returns_tokens(self, api_client, signup_payload):
        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['email'] == 'new.user@example.com'
        assert response.data['user']['role'] == 'CUSTOMER'
        assert 'password' not in response.data['user']
        assert response.data['access']
        assert response.data['refresh']

        user = User.objects.get(email='new.user@example.com')
        assert user.check_password('secret123')

    def test_role_in_payload_is_ignored(self, api_client, signup_payload):
        signup_payload['role'] = 'ADMIN'

        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['role'] == 'CUSTOMER'

    def test_duplicate_email_is_conflict(self, api_client, signup_payload, make_user):
        make_user(email='new.user@example.com')

        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'duplicate_email'

    def test_short_password_rejected(self, api_client, signup_payload):
        signup_payload['password'] = '123'

        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['errors']

    def test_invalid_phone_rejected(self, api_client, signup_payload):
        signup_payload['phone'] = 'call me'

        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone' in response.data['errors']

    def test_missing_name_rejected(self, api_client, signup_payload):
        del signup_payload['name']

        response = api_client.post(reverse('auth_signup'), signup_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['detail'] == 'Validation error'


# ============================================================================
# 2. LOGIN
# ============================================================================

@pytest.mark.django_db
class TestLogin:

    def test_login_returns_tokens_and_user(self, api_client, make_user):
        user = make_user(User.Role.VENDOR, email='vendor@example.com', password='secret123')

        response = api_client.post(
            reverse('auth_login'),
            {'email': 'VENDOR@example.com', 'password': 'secret123'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user']['id'] == user.id
        assert response.data['user']['role'] == 'VENDOR'
        assert response.data['access']
        assert response.data['refresh']

    @pytest.mark.parametrize('email, password', [
        ('vendor@example.com', 'wrong-password'),
        ('nobody@example.com', 'secret123'),
    ])
    def test_bad_credentials_are_generic_401(self, api_client, make_user, email, password):
        make_user(email='vendor@example.com', password='secret123')

        response = api_client.post(
            reverse('auth_login'), {'email': email, 'password': password}, format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['detail'] == 'Invalid credentials'

    def test_inactive_user_cannot_login(self, api_client, make_user):
        make_user(email='inactive@example.com', password='secret123', is_active=False)

        response = api_client.post(
            reverse('auth_login'),
            {'email': 'inactive@example.com', 'password': 'secret123'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_fields_rejected(self, api_client):
        response = api_client.post(reverse('auth_login'), {'email': 'a@b.com'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST


# ============================================================================
# 3. REFRESH / LOGOUT / ME
# ============================================================================

@pytest.mark.django_db
class TestTokenLifecycle:

    def test_refresh_rotates_and_blacklists_old_token(self, api_client, customer):
        old_refresh = str(RefreshToken.for_user(customer))

        response = api_client.post(reverse('token_refresh'), {'refresh': old_refresh}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['access']
        assert response.data['refresh'] != old_refresh

        reuse = api_client.post(reverse('token_refresh'), {'refresh': old_refresh}, format='json')
        assert reuse.status_code == status.HTTP_401_UNAUTHORIZED

    def test_malformed_refresh_rejected(self, api_client):
        response = api_client.post(reverse('token_refresh'), {'refresh': 'not-a-token'}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_blacklists_refresh_token(self, auth_client, customer):
        refresh = RefreshToken.for_user(customer)
        client = auth_client(customer)

        response = client.post(reverse('auth_logout'), {'refresh': str(refresh)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert BlacklistedToken.objects.filter(token__jti=refresh['jti']).exists()

        reuse = client.post(reverse('token_refresh'), {'refresh': str(refresh)}, format='json')
        assert reuse.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_with_someone_elses_token_is_forbidden(self, auth_client, customer, other_customer):
        foreign = RefreshToken.for_user(other_customer)

        response = auth_client(customer).post(
            reverse('auth_logout'), {'refresh': str(foreign)}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_logout_requires_authentication(self, api_client, customer):
        response = api_client.post(
            reverse('auth_logout'), {'refresh': str(RefreshToken.for_user(customer))}, format='json'
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_returns_current_user(self, auth_client, vendor):
        response = auth_client(vendor).get(reverse('auth_me'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == vendor.id
        assert response.data['role'] == 'VENDOR'
