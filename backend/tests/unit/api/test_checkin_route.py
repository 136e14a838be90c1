"""Tests for POST /api/send-alloggiati-txt.

The rate-limit store and the check-in service are swapped through
app.dependency_overrides; no email leaves the process.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from precheckin.models import CheckinError, ErrorCode
from precheckin.services.dispatcher import DispatchResult
from precheckin.services.rate_limiter import InMemoryRateLimitStore, RateLimitStoreError
from precheckin_api.dependencies import get_checkin_service_provider, get_rate_limit_store
from precheckin_api.main import app

URL = "/api/send-alloggiati-txt"
MAX_REQUESTS = 3


@pytest.fixture
def rate_limit_store() -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(max_requests=MAX_REQUESTS, window_seconds=3600)


@pytest.fixture
def mock_service() -> MagicMock:
    service = MagicMock()
    service.submit.return_value = DispatchResult(message_id="email_123", response={"id": "email_123"})
    return service


@pytest.fixture
def service_provider(mock_service) -> MagicMock:
    return MagicMock(return_value=mock_service)


@pytest.fixture
def client(rate_limit_store, service_provider):
    """Test client with a private store and a mocked service."""
    app.dependency_overrides[get_rate_limit_store] = lambda: rate_limit_store
    app.dependency_overrides[get_checkin_service_provider] = lambda: service_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(rate_limit_store):
    """Test client using the real service provider (no RESEND_API_KEY set)."""
    app.dependency_overrides[get_rate_limit_store] = lambda: rate_limit_store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMethod:
    """Only POST is accepted."""

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods_return_405(self, client, method):
        response = client.request(method.upper(), URL)

        assert response.status_code == 405
        body = response.json()
        assert body["status"] == "error"
        assert body["error_code"] == "ERR_METHOD"


class TestSuccess:
    """Tests for accepted submissions."""

    def test_returns_ok_with_message_id(self, client, submission_payload, mock_service):
        response = client.post(URL, json=submission_payload)

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "message": "Email sent successfully",
            "id": "email_123",
        }
        mock_service.submit.assert_called_once()

    def test_service_receives_validated_submission(self, client, submission_payload, mock_service):
        client.post(URL, json=submission_payload)
        submission = mock_service.submit.call_args.args[0]

        assert submission.arrival_date == "2024-07-01"
        assert [g.name for g in submission.guests] == ["Mario", "Giulia"]

    def test_rate_limit_headers_on_success(self, client, submission_payload):
        response = client.post(URL, json=submission_payload)

        assert response.headers["X-RateLimit-Limit"] == str(MAX_REQUESTS)
        assert response.headers["X-RateLimit-Remaining"] == str(MAX_REQUESTS - 1)

    def test_correlation_id_is_returned(self, client, submission_payload):
        response = client.post(URL, json=submission_payload, headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestValidation:
    """Tests for rejected bodies."""

    def test_missing_arrival_date(self, client, submission_payload, mock_service):
        del submission_payload["dataArrivo"]

        response = client.post(URL, json=submission_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "ERR_VALIDATION"
        assert body["error"] == "Missing required fields"
        assert any(detail["loc"] == ["dataArrivo"] for detail in body["details"])
        mock_service.submit.assert_not_called()

    def test_unknown_role_code(self, client, submission_payload, mock_service):
        submission_payload["guests"][0]["tipoAlloggiato"] = "99"

        response = client.post(URL, json=submission_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "ERR_VALIDATION"
        assert any(detail["loc"][:3] == ["guests", "0", "tipoAlloggiato"] for detail in body["details"])
        mock_service.submit.assert_not_called()

    def test_empty_guest_list(self, client, submission_payload):
        submission_payload["guests"] = []
        assert client.post(URL, json=submission_payload).status_code == 400

    def test_too_many_guests(self, client, submission_payload, italian_guest):
        submission_payload["guests"] = [italian_guest] * 6
        assert client.post(URL, json=submission_payload).status_code == 400

    def test_invalid_json(self, client):
        response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["details"][0]["type"] == "json_invalid"

    def test_non_object_body(self, client):
        assert client.post(URL, json=["a"]).status_code == 400


class TestRateLimit:
    """Tests for the per-client admission limit."""

    def test_request_over_limit_is_rejected(self, client, submission_payload, mock_service):
        for _ in range(MAX_REQUESTS):
            assert client.post(URL, json=submission_payload).status_code == 200

        response = client.post(URL, json=submission_payload)

        assert response.status_code == 429
        assert response.json()["error_code"] == "ERR_RATE_LIMIT"
        assert response.json()["message"] == "Troppe richieste. Riprova più tardi."
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert mock_service.submit.call_count == MAX_REQUESTS

    def test_invalid_requests_count_too(self, client):
        """The limit applies before the body is looked at."""
        for _ in range(MAX_REQUESTS):
            assert client.post(URL, json={}).status_code == 400

        assert client.post(URL, json={}).status_code == 429

    def test_clients_are_keyed_by_forwarded_address(self, client, submission_payload):
        for _ in range(MAX_REQUESTS):
            client.post(URL, json=submission_payload, headers={"X-Forwarded-For": "203.0.113.1"})

        blocked = client.post(URL, json=submission_payload, headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.post(URL, json=submission_payload, headers={"X-Forwarded-For": "203.0.113.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_store_outage_admits_request(self, client, submission_payload, rate_limit_store):
        with patch.object(rate_limit_store, "increment", side_effect=RateLimitStoreError("down")):
            response = client.post(URL, json=submission_payload)

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == str(MAX_REQUESTS)


class TestHoneypot:
    """Tests for the bot trap field."""

    def test_filled_honeypot_returns_ok_silently(self, client, submission_payload, service_provider, mock_service):
        submission_payload["honeypot"] = "http://spam.example"

        response = client.post(URL, json=submission_payload)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        service_provider.assert_not_called()
        mock_service.submit.assert_not_called()

    def test_honeypot_skips_validation(self, client):
        response = client.post(URL, json={"honeypot": "x"})
        assert response.status_code == 200

    def test_blank_honeypot_is_ignored(self, client, submission_payload, mock_service):
        submission_payload["honeypot"] = "  "

        client.post(URL, json=submission_payload)

        mock_service.submit.assert_called_once()

    @pytest.mark.parametrize("value", [0, False, None, ""])
    def test_falsy_honeypot_is_ignored(self, client, submission_payload, mock_service, value):
        """Empty JSON values never trip the trap."""
        submission_payload["honeypot"] = value

        response = client.post(URL, json=submission_payload)

        assert response.json()["id"] == "email_123"
        mock_service.submit.assert_called_once()

    @pytest.mark.parametrize("value", [True, 1, ["x"], {"a": 1}])
    def test_truthy_non_string_honeypot_trips(self, client, submission_payload, mock_service, value):
        submission_payload["honeypot"] = value

        response = client.post(URL, json=submission_payload)

        assert response.json() == {"status": "ok"}
        mock_service.submit.assert_not_called()


class TestServerErrors:
    """Tests for configuration and delivery failures."""

    def test_missing_api_key(self, unconfigured_client, submission_payload):
        response = unconfigured_client.post(URL, json=submission_payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "ERR_CONFIG_001"
        assert body["error"] == "Missing RESEND_API_KEY"

    def test_missing_api_key_reported_before_validation(self, unconfigured_client):
        response = unconfigured_client.post(URL, json={})
        assert response.json()["error_code"] == "ERR_CONFIG_001"

    def test_honeypot_wins_over_missing_api_key(self, unconfigured_client):
        response = unconfigured_client.post(URL, json={"honeypot": "x"})
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "code",
        [ErrorCode.EMAIL_RATE_LIMITED, ErrorCode.EMAIL_AUTH_FAILED, ErrorCode.EMAIL_DELIVERY_FAILED],
    )
    def test_email_failure(self, client, submission_payload, mock_service, code):
        mock_service.submit.side_effect = CheckinError(code)

        response = client.post(URL, json=submission_payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == code.value
        assert body["error"] == "Resend API error"
        assert response.headers["X-RateLimit-Limit"] == str(MAX_REQUESTS)

    def test_unexpected_error_is_generic(self, rate_limit_store, service_provider, mock_service, submission_payload):
        mock_service.submit.side_effect = RuntimeError("secret internals")
        app.dependency_overrides[get_rate_limit_store] = lambda: rate_limit_store
        app.dependency_overrides[get_checkin_service_provider] = lambda: service_provider
        try:
            response = TestClient(app, raise_server_exceptions=False).post(URL, json=submission_payload)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error_code"] == "ERR_INTERNAL"
        assert "secret internals" not in response.text


class TestConfiguredService:
    """Runs the real service with only the HTTP client mocked."""

    def test_end_to_end_with_mocked_email_client(self, unconfigured_client, submission_payload, monkeypatch):
        from precheckin_api.dependencies import reset_services

        monkeypatch.setenv("RESEND_API_KEY", "re_test_key")
        monkeypatch.setenv("EMAIL_TO", "host@example.com")
        reset_services()

        with patch("precheckin_api.dependencies.ResendClient") as mock_client_class:
            mock_client = mock_client_class.return_value
            mock_client.send_email.return_value = {"id": "email_999"}
            app.dependency_overrides.pop(get_rate_limit_store, None)

            response = unconfigured_client.post(URL, json=submission_payload)

        assert response.status_code == 200
        assert response.json()["id"] == "email_999"
        message = mock_client.send_email.call_args.args[0]
        assert message["to"] == ["host@example.com"]
        assert [a["filename"] for a in message["attachments"]] == ["alloggiati.txt", "gies.txt", "gies.xml"]
