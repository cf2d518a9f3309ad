"""
Unit Tests for the shared Firestore and Firebase Admin clients
"""
from unittest.mock import MagicMock, patch

import pytest

from event_service import firestore_client
from event_service.config import settings
from event_service.firebase_admin_init import initialize_firebase_admin


@pytest.fixture
def fresh_firestore_client():
    with patch.object(firestore_client, "_client", None):
        yield


class TestFirestoreClient:
    def test_named_database(self, fresh_firestore_client):
        with patch.object(settings, "FIRESTORE_DATABASE_NAME", "events"), patch.object(
            settings, "GCP_PROJECT_ID", "demo-project"
        ), patch("event_service.firestore_client.firestore.Client") as mock_client:
            client = firestore_client.get_firestore_client()

        mock_client.assert_called_once_with(project="demo-project", database="events")
        assert client is mock_client.return_value

    def test_client_is_reused(self, fresh_firestore_client):
        with patch.object(settings, "FIRESTORE_DATABASE_NAME", None), patch(
            "event_service.firestore_client.firestore.Client"
        ) as mock_client:
            first = firestore_client.get_firestore_client()
            second = firestore_client.get_firestore_client()

        assert first is second
        mock_client.assert_called_once_with(project=settings.GCP_PROJECT_ID)

    def test_failure_raises_runtime_error(self, fresh_firestore_client):
        with patch(
            "event_service.firestore_client.firestore.Client",
            side_effect=Exception("no credentials"),
        ):
            with pytest.raises(RuntimeError):
                firestore_client.get_firestore_client()


class TestFirebaseAdmin:
    @patch("event_service.firebase_admin_init.firebase_admin.initialize_app")
    @patch("event_service.firebase_admin_init.firebase_admin.get_app")
    def test_existing_app_is_reused(self, mock_get_app, mock_initialize):
        existing = MagicMock()
        mock_get_app.return_value = existing

        assert initialize_firebase_admin() is existing
        mock_initialize.assert_not_called()

    @patch("event_service.firebase_admin_init.firebase_admin.initialize_app")
    @patch("event_service.firebase_admin_init.firebase_admin.get_app")
    def test_creates_app_with_project(self, mock_get_app, mock_initialize):
        mock_get_app.side_effect = ValueError("no default app")

        with patch.object(settings, "GCP_PROJECT_ID", "demo-project"):
            app = initialize_firebase_admin()

        mock_initialize.assert_called_once_with(options={"projectId": "demo-project"})
        assert app is mock_initialize.return_value
