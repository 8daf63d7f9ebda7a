"""
Tests for login, user management and the API error envelope.
"""

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import IntegrityError, OperationalError

import pytest

from authentication.exceptions import custom_exception_handler
from authentication.models import CustomUser, LoginHistory


@pytest.mark.django_db
class TestLogin:
    def test_successful_login(self, api_client, cashier_user):
        response = api_client.post(
            "/auth/login/", {"email": "cashier@cafe.com", "password": "testpass123"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["access"]
        assert response.data["refresh"]
        assert response.data["user"]["role"] == "cashier"

        history = LoginHistory.objects.get()
        assert history.successful is True
        assert history.user == cashier_user
        cashier_user.refresh_from_db()
        assert cashier_user.last_login_at is not None

    def test_failed_login_is_recorded(self, api_client, cashier_user):
        response = api_client.post(
            "/auth/login/", {"email": "cashier@cafe.com", "password": "wrong"}, format="json"
        )

        assert response.status_code == 400
        assert response.data["error"] is True
        assert response.data["message"] == "Validation error"

        history = LoginHistory.objects.get()
        assert history.successful is False
        assert history.user is None
        assert history.email == "cashier@cafe.com"

    def test_access_token_authenticates(self, api_client, cashier_user):
        tokens = api_client.post(
            "/auth/login/", {"email": "cashier@cafe.com", "password": "testpass123"}, format="json"
        ).data

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = api_client.get("/profile/")

        assert response.status_code == 200
        assert response.data["email"] == "cashier@cafe.com"

    def test_login_history_endpoint(self, api_client, cashier_user):
        api_client.post("/auth/login/", {"email": "cashier@cafe.com", "password": "testpass123"}, format="json")
        api_client.force_authenticate(user=cashier_user)

        response = api_client.get("/profile/login-history/")

        assert response.status_code == 200
        assert response.data["count"] == 1


@pytest.mark.django_db
class TestUserManagement:
    def test_admin_creates_user(self, authenticated_client):
        client, _ = authenticated_client
        payload = {
            "email": "new@cafe.com",
            "full_name": "New Manager",
            "role": "manager",
            "password": "Espresso-Shot-42",
            "confirm_password": "Espresso-Shot-42",
        }

        response = client.post("/users/", payload, format="json")

        assert response.status_code == 201
        user = CustomUser.objects.get(email="new@cafe.com")
        assert user.role == "manager"
        assert user.check_password("Espresso-Shot-42")

    def test_password_mismatch(self, authenticated_client):
        client, _ = authenticated_client
        payload = {
            "email": "new@cafe.com",
            "password": "Espresso-Shot-42",
            "confirm_password": "Espresso-Shot-43",
        }

        assert client.post("/users/", payload, format="json").status_code == 400

    def test_cashier_cannot_manage_users(self, cashier_client):
        client, _ = cashier_client

        response = client.get("/users/")

        assert response.status_code == 403
        assert response.data["message"] == "Permission denied"

    def test_delete_deactivates(self, authenticated_client, cashier_user):
        client, _ = authenticated_client

        response = client.delete(f"/users/{cashier_user.id}/")

        assert response.status_code == 204
        cashier_user.refresh_from_db()
        assert cashier_user.is_active is False

    def test_profile_cannot_change_role(self, cashier_client):
        client, cashier = cashier_client

        response = client.patch("/profile/", {"role": "admin", "full_name": "Renamed"}, format="json")

        assert response.status_code == 200
        cashier.refresh_from_db()
        assert cashier.role == "cashier"
        assert cashier.full_name == "Renamed"


@pytest.mark.django_db
class TestErrorEnvelope:
    def test_unauthenticated(self, api_client):
        response = api_client.get("/profile/")

        assert response.status_code == 401
        assert response.data == {
            "error": True,
            "message": "Authentication required",
            "details": response.data["details"],
            "status_code": 401,
        }

    def test_health_check_is_public(self, api_client):
        response = api_client.get("/health/")

        assert response.status_code == 200
        assert response.data["status"] == "healthy"
        assert response.data["database"] == "reachable"
        assert response.data["numeric_id_digits"] == 9


class TestExceptionHandler:
    def test_django_validation_error(self):
        response = custom_exception_handler(DjangoValidationError("Bad value"), {})

        assert response.status_code == 400
        assert response.data["details"] == {"non_field_errors": ["Bad value"]}

    def test_missing_object(self):
        response = custom_exception_handler(ObjectDoesNotExist("gone"), {})

        assert response.status_code == 404
        assert response.data["message"] == "Resource not found"

    def test_integrity_error(self):
        response = custom_exception_handler(IntegrityError("duplicate"), {})

        assert response.status_code == 400
        assert response.data["message"] == "Database integrity error"

    def test_database_unavailable(self):
        response = custom_exception_handler(OperationalError("down"), {})

        assert response.status_code == 503
        assert response.data["error"] is True

    def test_unexpected_error_hides_details_outside_debug(self, settings):
        settings.DEBUG = False

        response = custom_exception_handler(RuntimeError("secret"), {})

        assert response.status_code == 500
        assert response.data["details"] == {}
