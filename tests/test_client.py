"""Tests for TestomatClient and connection settings."""

import json

import httpx
import pytest

from checktests.client import ServerError, TestomatClient, describe_status
from checktests.config import DEFAULT_URL, Settings, validate_api_key
from checktests.errors import ConfigurationError, TransportError

API_KEY = "tstmt_test_key"


class TestFetchTestData:
    def test_returns_body(self, server, client):
        server.tests = {"A.java#A#a": "@Tabc"}

        body = client.fetch_test_data()

        assert json.loads(body) == {"tests": {"A.java#A#a": "@Tabc"}}
        assert server.calls == [("GET", API_KEY)]

    def test_retries_server_errors(self, server, client):
        server.fail_next(500, 503)

        client.fetch_test_data()

        assert len(server.calls) == 3

    def test_gives_up_after_max_attempts(self, server, client):
        server.fail_next(500, 500, 500)

        with pytest.raises(ServerError) as exc_info:
            client.fetch_test_data()

        assert exc_info.value.status_code == 500
        assert len(server.calls) == 3

    def test_client_errors_are_not_retried(self, server, client):
        server.fail_next(401)

        with pytest.raises(TransportError) as exc_info:
            client.fetch_test_data()

        assert not isinstance(exc_info.value, ServerError)
        assert "Invalid API key" in str(exc_info.value)
        assert len(server.calls) == 1

    @pytest.mark.parametrize("api_key", [None, "", "   ", "abc123"])
    def test_invalid_key_is_rejected_before_sending(self, server, http, api_key):
        client = TestomatClient("http://testserver", api_key, http=http, backoff=0)

        with pytest.raises(ConfigurationError):
            client.fetch_test_data()

        assert server.calls == []


class TestLoadTests:
    def test_posts_payload(self, server, client):
        client.load_tests({"framework": "junit", "tests": []})

        assert server.loads == [{"framework": "junit", "tests": []}]
        assert server.calls == [("POST", API_KEY)]

    def test_unprocessable_payload(self, server, client):
        server.fail_next(422)

        with pytest.raises(TransportError) as exc_info:
            client.load_tests({})

        assert exc_info.value.status_code == 422
        assert "Invalid data format." in str(exc_info.value)


class TestNetworkErrors:
    def make_client(self, error):
        def handler(request):
            raise error

        http = httpx.Client(transport=httpx.MockTransport(handler))
        return TestomatClient("http://testserver", API_KEY, http=http, backoff=0)

    def test_connect_error(self):
        client = self.make_client(httpx.ConnectError("refused"))

        with pytest.raises(TransportError, match="Cannot connect"):
            client.fetch_test_data()

    def test_timeout(self):
        client = self.make_client(httpx.ReadTimeout("slow"))

        with pytest.raises(TransportError, match="timed out after 3 attempts"):
            client.fetch_test_data()

    def test_attempts_are_counted(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("refused")

        http = httpx.Client(transport=httpx.MockTransport(handler))
        client = TestomatClient("http://testserver", API_KEY, http=http, max_attempts=2, backoff=0)

        with pytest.raises(TransportError):
            client.fetch_test_data()

        assert len(attempts) == 2


class TestDescribeStatus:
    def test_known_status(self):
        assert describe_status(httpx.Response(404)) == (
            "HTTP 404: API endpoint not found. Please check the server URL."
        )

    def test_unknown_status_uses_body(self):
        assert describe_status(httpx.Response(418, text="teapot")) == "HTTP 418: teapot"
        assert describe_status(httpx.Response(418)) == "HTTP 418: Unknown error"

    def test_unprocessable_includes_body(self):
        message = describe_status(httpx.Response(422, text="bad field"))
        assert message.endswith("Server response: bad field")


class TestSettings:
    def test_reads_environment(self):
        settings = Settings.from_env(
            {"TESTOMATIO": API_KEY, "TESTOMATIO_URL": "https://tms.local/"}
        )

        assert settings.api_key == API_KEY
        assert settings.server_url == "https://tms.local"

    def test_flags_override_environment(self):
        settings = Settings.from_env(
            {"TESTOMATIO": "tstmt_env"}, api_key="tstmt_flag", url="https://flag"
        )

        assert (settings.api_key, settings.url) == ("tstmt_flag", "https://flag")

    def test_defaults(self):
        settings = Settings.from_env({})

        assert not settings.has_api_key
        assert not settings.has_url
        assert settings.server_url == DEFAULT_URL
        with pytest.raises(ConfigurationError):
            settings.require_api_key()

    def test_validate_api_key(self):
        assert validate_api_key(API_KEY) == API_KEY
        with pytest.raises(ConfigurationError):
            validate_api_key("key_without_prefix")
