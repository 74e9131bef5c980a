"""Registration client: endpoint resolution and response handling."""
import pytest
import requests

from styla_connect.config.settings import STYLA_API_CONNECTOR_URL_PRODUCTION
from styla_connect.core.domain import Consumer, Token, TokenState, TokenType
from styla_connect.core.exceptions import ConfigurationError, RegistrationError
from styla_connect.core.registration import RegistrationClient

LOGIN = {"email": "a@b.com", "password": "pw"}


@pytest.fixture()
def consumer():
    return Consumer(name="Styla Api Connector", key="ck", secret="cs", id=1)


@pytest.fixture()
def token():
    return Token(consumer_id=1, token="tk", secret="ts", type=TokenType.ACCESS, state=TokenState.PERMANENT, id=1)


class TestResolveEndpoint:
    def test_production_ignores_override(self):
        client = RegistrationClient(developer_mode=False)
        assert client.resolve_endpoint("http://localhost:9000/api") == STYLA_API_CONNECTOR_URL_PRODUCTION

    def test_developer_mode_uses_override(self):
        client = RegistrationClient(developer_mode=True)
        assert client.resolve_endpoint("http://localhost:9000/api") == "http://localhost:9000/api"

    def test_developer_mode_without_override_uses_production(self):
        client = RegistrationClient(developer_mode=True)
        assert client.resolve_endpoint(None) == STYLA_API_CONNECTOR_URL_PRODUCTION

    @pytest.mark.parametrize("url", ["not a url", "localhost", "http://", "http://host:port/x"])
    def test_developer_mode_rejects_invalid_override(self, url):
        client = RegistrationClient(developer_mode=True)
        with pytest.raises(ConfigurationError, match="Connection URL"):
            client.resolve_endpoint(url)


class TestRegister:
    def test_posts_credentials_form_encoded(self, stub_styla, consumer, token):
        client = RegistrationClient(timeout=7)

        result = client.register(LOGIN, consumer, token)

        assert result.client == "acme"
        assert result.configuration == {"client": "acme"}
        call = stub_styla.calls[0]
        assert call["url"] == STYLA_API_CONNECTOR_URL_PRODUCTION
        assert call["timeout"] == 7
        assert call["data"] == {
            "styla_email": "a@b.com",
            "styla_password": "pw",
            "consumer_key": "ck",
            "consumer_secret": "cs",
            "token_key": "tk",
            "token_secret": "ts",
        }

    def test_non_success_status_carries_remote_error(self, stub_styla, consumer, token):
        stub_styla.response = stub_styla.Response({"error": "bad credentials"}, 401)

        with pytest.raises(RegistrationError) as excinfo:
            RegistrationClient().register(LOGIN, consumer, token)

        err = excinfo.value
        assert err.status_code == 401
        assert err.message == "bad credentials"
        assert "401 - bad credentials" in str(err)
        assert "Please check the email and password" in str(err)

    def test_non_json_error_body(self, stub_styla, consumer, token):
        stub_styla.response = stub_styla.Response(None, 502, text="<html>Bad Gateway</html>")

        with pytest.raises(RegistrationError) as excinfo:
            RegistrationClient().register(LOGIN, consumer, token)

        assert excinfo.value.status_code == 502
        assert "Error result: 502." in str(excinfo.value)

    def test_success_without_json_object_fails(self, stub_styla, consumer, token):
        stub_styla.response = stub_styla.Response(["acme"], 200)

        with pytest.raises(RegistrationError):
            RegistrationClient().register(LOGIN, consumer, token)

    def test_success_without_client_name(self, stub_styla, consumer, token):
        stub_styla.response = stub_styla.Response({"status": "ok"}, 200)

        result = RegistrationClient().register(LOGIN, consumer, token)

        assert result.client is None
        assert result.configuration == {"status": "ok"}

    def test_timeout_becomes_registration_error(self, stub_styla, consumer, token):
        stub_styla.response = requests.Timeout("read timed out")

        with pytest.raises(RegistrationError) as excinfo:
            RegistrationClient().register(LOGIN, consumer, token)

        assert excinfo.value.status_code is None
        assert "no response" in str(excinfo.value)

    def test_invalid_override_fails_before_network(self, stub_styla, consumer, token):
        with pytest.raises(ConfigurationError):
            RegistrationClient(developer_mode=True).register(LOGIN, consumer, token, override_url="not a url")

        assert stub_styla.calls == []

    def test_override_used_in_developer_mode(self, stub_styla, consumer, token):
        RegistrationClient(developer_mode=True).register(
            LOGIN, consumer, token, override_url="http://styla.local/api/magento"
        )
        assert stub_styla.calls[0]["url"] == "http://styla.local/api/magento"
