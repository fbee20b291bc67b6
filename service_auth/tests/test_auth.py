"""
Tests for Auth service.
"""

import jwt
import pytest
from fastapi.testclient import TestClient

from service_auth.app.main import create_app
from shared.test_helpers import TEST_FAILURE_URL, TEST_JWT_SECRET, TEST_SUCCESS_URL


@pytest.fixture
def client(config, stub_graph):
    """Create test client wired to the stub Graph API."""
    app = create_app(config=config, transport=stub_graph.transport)
    return TestClient(app)


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "auth"
    assert data["version"] == "1.0.0"


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "auth"
    assert data["status"] == "ok"
    assert data["dependencies"]["facebook"] == "configured"


def test_callback_success_redirect(client):
    """Test a valid code redirects to the success URL with a signed token."""
    response = client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)

    assert response.status_code == 302
    location = response.headers["location"]
    assert location.startswith(TEST_SUCCESS_URL + "/")

    token = location[len(TEST_SUCCESS_URL) + 1:]
    claims = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"], audience="client")
    assert claims["id"] == "facebook:123"
    assert claims["name"] == "A B"
    assert claims["email"] == "a@b.com"


def test_callback_rejected_redirect(client, stub_graph):
    """Test a token rejected at introspection redirects to the failure URL only."""
    stub_graph.revoke("T1")

    response = client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == TEST_FAILURE_URL


def test_callback_token_endpoint_failure(client, stub_graph):
    """Test a token endpoint error is a server-side failure, not a failure redirect."""
    stub_graph.token_status = 500
    stub_graph.token_body = '{"error": {"message": "internal detail", "type": "Exception"}}'

    response = client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)

    assert response.status_code == 502
    assert "location" not in response.headers
    data = response.json()
    assert data["code"] == "TRANSPORT_ERROR"
    assert "internal detail" not in response.text


def test_callback_replayed_code(client):
    """Test the second use of a code fails server-side."""
    first = client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)
    second = client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)

    assert first.status_code == 302
    assert second.status_code == 502


def test_callback_missing_code(client, stub_graph):
    """Test a redirect without a code never reaches the provider."""
    response = client.get("/FacebookCallback", follow_redirects=False)

    assert response.status_code == 422
    assert stub_graph.requests == []


def test_metrics_endpoint(client):
    """Test callback outcomes are exported."""
    client.get("/FacebookCallback", params={"code": "ABC"}, follow_redirects=False)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert 'auth_callbacks_total{outcome="signed"} 1.0' in response.text
