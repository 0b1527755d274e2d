"""Integration tests for API endpoints using Starlette TestClient."""

import csv
import io
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from starlette.testclient import TestClient

from src.core.models import DailyEntry
from src.main import create_app
from src.shell.auth import current_session_user, generate_api_key, hash_api_key
from src.shell.export_service import ExportService


API_KEY = generate_api_key()
USER_ID = hash_api_key(API_KEY)


@pytest.fixture
def auth_client():
    """Auth client that knows exactly one API key."""
    mock_auth = MagicMock()
    mock_auth.authenticate.side_effect = (
        lambda header: USER_ID if header == f"Bearer {API_KEY}" else None
    )
    mock_auth.register_user.return_value = (API_KEY, USER_ID)
    mock_auth.validate_api_key.side_effect = lambda key: USER_ID if key == API_KEY else None
    with patch("src.main.get_auth_client", return_value=mock_auth):
        yield mock_auth


@pytest.fixture
def client(auth_client, records):
    """Test client whose export service reads from the in-memory store."""
    service = ExportService(records, current_session_user)
    with patch("src.main.get_export_service", return_value=service):
        yield TestClient(create_app())


def seed(records) -> None:
    for day, meals in ((1, 2), (2, 3)):
        entry = DailyEntry(user_id=USER_ID, date=date(2025, 1, day), activities=["Reading"], meals=meals)
        records.entries[entry.id] = entry


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health(self, client):
        """Health endpoint returns 200 and the service name."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "custodylog"}


class TestAuthEndpoints:
    """Tests for /auth/register and /auth/validate."""

    def test_register_success(self, client):
        """Successful registration returns the API key once."""
        response = client.post("/auth/register", json={"email": "parent@example.com"})

        assert response.status_code == 200
        assert response.json()["api_key"] == API_KEY
        assert response.json()["mcp_url"].endswith("/mcp")

    def test_register_invalid_email(self, client):
        """Registration with an invalid email returns 400."""
        response = client.post("/auth/register", json={"email": "not-an-email"})
        assert response.status_code == 400

    def test_validate(self, client):
        """Known keys are valid, unknown ones are not."""
        assert client.post("/auth/validate", json={"api_key": API_KEY}).json()["valid"] is True
        assert client.post("/auth/validate", json={"api_key": "cdl_nope"}).json()["valid"] is False
        assert client.post("/auth/validate", json={}).json()["valid"] is False


class TestExportEndpoint:
    """Tests for /export/{fmt}."""

    def test_csv_download(self, client, records):
        """An authenticated CSV export downloads with the dated filename."""
        seed(records)
        response = client.get(
            "/export/csv",
            params={"start": "2025-01-01", "end": "2025-01-02"},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert (
            'filename="custody-documentation-2025-01-01-to-2025-01-02.csv"'
            in response.headers["content-disposition"]
        )
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert [r["Date"] for r in rows] == ["2025-01-02", "2025-01-01"]

    def test_json_download(self, client, records):
        """JSON export is an array of the entries in range."""
        seed(records)
        response = client.get(
            "/export/json",
            params={"start": "2025-01-02", "end": "2025-01-02"},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )

        assert response.status_code == 200
        assert [e["meals"] for e in response.json()] == [3]

    def test_unauthenticated(self, client):
        """No key means 401 and no file."""
        response = client.get("/export/csv", params={"start": "2025-01-01", "end": "2025-01-02"})
        assert response.status_code == 401

    def test_read_failure(self, client, records):
        """A failed range read is 502, never a partial file."""
        records.fail_reads = True
        response = client.get(
            "/export/html",
            params={"start": "2025-01-01", "end": "2025-01-02"},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )
        assert response.status_code == 502

    def test_bad_request(self, client):
        """Unknown formats or missing dates are 400."""
        headers = {"Authorization": f"Bearer {API_KEY}"}
        assert client.get("/export/pdf", params={"start": "2025-01-01", "end": "2025-01-02"}, headers=headers).status_code == 400
        assert client.get("/export/csv", headers=headers).status_code == 400
