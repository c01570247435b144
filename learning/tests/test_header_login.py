import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

User = get_user_model()


@pytest.mark.django_db
class TestHeaderLogin:
    def setup_method(self):
        self.client = APIClient()
        self.url = reverse("user-me")
        User.objects.create_user(username="alice", display_name="Alice")
        User.objects.create_user(username="bob", display_name="Bob")

    def test_session_carries_over_after_header_login(self):
        """Once logged in by header, later requests ride on the session cookie."""
        first = self.client.get(self.url, HTTP_X_USER_NAME="alice")
        second = self.client.get(self.url)

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_200_OK
        assert second.data["username"] == "alice"

    def test_header_switches_session_user(self):
        self.client.get(self.url, HTTP_X_USER_NAME="alice")
        response = self.client.get(self.url, HTTP_X_USER_NAME="bob")

        assert response.data["display_name"] == "Bob"
        assert self.client.get(self.url).data["username"] == "bob"

    def test_unknown_header_rejected_even_with_session(self):
        self.client.get(self.url, HTTP_X_USER_NAME="alice")
        response = self.client.get(self.url, HTTP_X_USER_NAME="mallory")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "User not found or invalid credentials."}

    def test_header_ignored_outside_api(self):
        self.client.get("/not-api/", HTTP_X_USER_NAME="alice")
        assert self.client.get(self.url).status_code == status.HTTP_401_UNAUTHORIZED
