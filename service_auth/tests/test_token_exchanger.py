"""
Unit tests for TokenExchanger.
"""

import pytest
import httpx

from service_auth.app.facebook import AccessToken, TokenExchanger
from shared.errors import TransportError
from shared.test_helpers import form_body


REDIRECT_URI = "https://auth.example.test/FacebookCallback"


class TestTokenExchanger:
    """Test cases for TokenExchanger."""

    @pytest.fixture
    def exchanger(self, stub_graph, metrics):
        """Create TokenExchanger bound to the stub Graph API."""
        return TokenExchanger(
            "test-app-id",
            "test-app-secret",
            transport=stub_graph.transport,
            metrics=metrics
        )

    @pytest.mark.asyncio
    async def test_exchange_success(self, exchanger):
        """Test a valid code yields the provider's access token."""
        token = await exchanger.exchange("ABC", REDIRECT_URI)

        assert token == AccessToken(access_token="T1", expires=3600)

    @pytest.mark.asyncio
    async def test_exchange_sends_client_credentials(self, exchanger, stub_graph):
        """Test the token request carries id, secret, redirect URI and code."""
        await exchanger.exchange("ABC", REDIRECT_URI)

        request = stub_graph.requests_to("/oauth/access_token")[0]
        assert request.method == "GET"
        assert request.url.host == "graph.facebook.com"
        assert request.url.params["client_id"] == "test-app-id"
        assert request.url.params["client_secret"] == "test-app-secret"
        assert request.url.params["redirect_uri"] == REDIRECT_URI
        assert request.url.params["code"] == "ABC"

    @pytest.mark.asyncio
    async def test_exchange_code_is_single_use(self, exchanger):
        """Test reusing a code fails on the second attempt."""
        await exchanger.exchange("ABC", REDIRECT_URI)

        with pytest.raises(TransportError) as exc_info:
            await exchanger.exchange("ABC", REDIRECT_URI)

        assert exc_info.value.details["status_code"] == 400

    @pytest.mark.asyncio
    async def test_exchange_redirect_uri_mismatch(self, exchanger):
        """Test a redirect URI differing from the registered one is refused."""
        with pytest.raises(TransportError):
            await exchanger.exchange("ABC", REDIRECT_URI + "/")

    @pytest.mark.asyncio
    async def test_exchange_non_2xx(self, exchanger, stub_graph):
        """Test a server error from the token endpoint."""
        stub_graph.token_status = 503
        stub_graph.token_body = "upstream unavailable"

        with pytest.raises(TransportError) as exc_info:
            await exchanger.exchange("ABC", REDIRECT_URI)

        assert exc_info.value.code == "TRANSPORT_ERROR"
        assert exc_info.value.details == {"endpoint": "token", "status_code": 503}
        assert "upstream unavailable" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_exchange_form_encoded_body(self, exchanger, stub_graph):
        """Test the legacy URL-encoded token response."""
        stub_graph.token_body = form_body(access_token="T2", expires="5183999")

        token = await exchanger.exchange("ABC", REDIRECT_URI)

        assert token.access_token == "T2"
        assert token.expires == 5183999

    @pytest.mark.asyncio
    async def test_exchange_numeric_expires_in(self, exchanger, stub_graph):
        """Test expires_in sent as a JSON number."""
        stub_graph.expires_in = 7200

        token = await exchanger.exchange("ABC", REDIRECT_URI)

        assert token.expires == 7200

    @pytest.mark.asyncio
    async def test_exchange_without_expiry(self, exchanger, stub_graph):
        """Test long-lived tokens that omit expires_in."""
        stub_graph.token_body = '{"access_token": "T3", "token_type": "bearer"}'

        token = await exchanger.exchange("ABC", REDIRECT_URI)

        assert token.access_token == "T3"
        assert token.expires is None

    @pytest.mark.asyncio
    async def test_exchange_missing_access_token(self, exchanger, stub_graph):
        """Test a 200 response without access_token."""
        stub_graph.token_body = '{"expires_in": "3600"}'

        with pytest.raises(TransportError):
            await exchanger.exchange("ABC", REDIRECT_URI)

    @pytest.mark.asyncio
    async def test_exchange_malformed_json(self, exchanger, stub_graph):
        """Test a truncated JSON body."""
        stub_graph.token_body = '{"access_token": '

        with pytest.raises(TransportError):
            await exchanger.exchange("ABC", REDIRECT_URI)

    @pytest.mark.asyncio
    async def test_exchange_connection_error(self):
        """Test an unreachable token endpoint."""
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        exchanger = TokenExchanger("id", "secret", transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError) as exc_info:
            await exchanger.exchange("ABC", REDIRECT_URI)

        assert exc_info.value.details["error"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_exchange_records_latency(self, exchanger, metrics):
        """Test token endpoint latency is observed."""
        await exchanger.exchange("ABC", REDIRECT_URI)

        count = metrics.get_sample_value(
            "provider_request_duration_seconds_count",
            {"endpoint": "token"}
        )
        assert count == 1.0

    def test_to_query_string_from_json(self):
        """Test JSON bodies are rewritten in canonical query form."""
        body = '{"access_token": "T1", "expires_in": "3600"}'

        assert TokenExchanger.to_query_string(body) == "access_token=T1&expires=3600"

    def test_to_query_string_escapes_values(self):
        """Test token characters that need escaping survive the round trip."""
        query_string = TokenExchanger.to_query_string('{"access_token": "a&b=c", "expires_in": 60}')

        assert AccessToken.from_query_string(query_string) == AccessToken(access_token="a&b=c", expires=60)


class TestAccessToken:
    """Test cases for AccessToken parsing."""

    def test_from_query_string(self):
        token = AccessToken.from_query_string("access_token=T1&expires=3600")

        assert token.access_token == "T1"
        assert token.expires == 3600

    def test_from_query_string_requires_token(self):
        with pytest.raises(TransportError):
            AccessToken.from_query_string("expires=3600")

    def test_from_query_string_keeps_token_verbatim(self):
        token = AccessToken.from_query_string("access_token=%20T1%20&expires=60")

        assert token.access_token == " T1 "

    def test_from_query_string_rejects_blank_token(self):
        with pytest.raises(TransportError):
            AccessToken.from_query_string("access_token=%20%20&expires=60")

    def test_from_query_string_rejects_bad_expiry(self):
        with pytest.raises(TransportError):
            AccessToken.from_query_string("access_token=T1&expires=soon")

    def test_repr_hides_token(self):
        token = AccessToken(access_token="secret-token", expires=10)

        assert "secret-token" not in repr(token)
        assert "secret-token" not in str(token)
