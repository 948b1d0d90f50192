"""Integration tests for token issuance and the principal endpoint."""

import pytest
from rest_framework_simplejwt.tokens import AccessToken

pytestmark = pytest.mark.integration


class TestTokenAuth:
    def test_token_carries_role_claim(self, api_client, farmer):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "farmer", "password": "testpass123"},
            format="json",
        )
        assert response.status_code == 200
        token = AccessToken(response.json()["access"])
        assert token["role"] == "farmer"
        assert token["email"] == "farmer@example.com"
        assert "refresh" in response.json()

    def test_wrong_password(self, api_client, farmer):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "farmer", "password": "nope"},
            format="json",
        )
        assert response.status_code == 401

    def test_bearer_token_authenticates(self, api_client, consumer):
        token = api_client.post(
            "/api/v1/auth/token/",
            {"username": "consumer", "password": "testpass123"},
            format="json",
        ).json()["access"]
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(consumer.id)
        assert data["role"] == "consumer"
        assert data["latitude"] == pytest.approx(52.2297)

    def test_me_requires_authentication(self, api_client):
        assert api_client.get("/api/v1/me").status_code == 401

    def test_invalid_token_rejected(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        assert api_client.get("/api/v1/orders/").status_code == 401

    def test_superuser_is_admin(self, client_for, django_user_model):
        root = django_user_model.objects.create_superuser(
            "root", email="root@example.com", password="testpass123"
        )
        assert client_for(root).get("/api/v1/me").json()["role"] == "admin"
