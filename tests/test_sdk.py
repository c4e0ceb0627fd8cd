"""
Unit tests for SDK layer.

Tests model client configuration, request shape and failure classification.
"""

from unittest.mock import Mock, patch

import httpx
import pytest
from openai import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    RateLimitError,
)

from ai_project_planner.config.loader import ModelConfig
from ai_project_planner.core.errors import ErrorKind, ModelClientError
from ai_project_planner.sdk.openai_client import ModelClient, classify_status_code

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(error_cls, status_code, body_text="provider says no"):
    response = httpx.Response(status_code, request=REQUEST, text=body_text)
    return error_cls(f"Error code: {status_code} - {body_text}", response=response, body=None)


def reply(content):
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    return response


class TestModelClientInit:
    """Test client construction and credential handling."""

    @patch('ai_project_planner.sdk.openai_client.OpenAI')
    def test_configured_with_explicit_key(self, mock_openai_class):
        config = ModelConfig(timeout_seconds=15)

        client = ModelClient(config, api_key="sk-test")

        assert client.configured
        mock_openai_class.assert_called_once_with(
            api_key="sk-test",
            base_url=None,
            timeout=15,
            max_retries=0
        )

    @patch('ai_project_planner.sdk.openai_client.OpenAI')
    def test_reads_key_from_environment(self, mock_openai_class, monkeypatch):
        monkeypatch.setenv("PLANNER_KEY", "sk-env")

        client = ModelClient(ModelConfig(api_key_env="PLANNER_KEY"))

        assert client.api_key == "sk-env"
        assert client.configured

    @patch('ai_project_planner.sdk.openai_client.OpenAI')
    def test_missing_key_fails_fast(self, mock_openai_class, monkeypatch):
        monkeypatch.delenv("PLANNER_KEY", raising=False)

        client = ModelClient(ModelConfig(api_key_env="PLANNER_KEY"))

        with pytest.raises(ModelClientError) as excinfo:
            client.generate("prompt")

        assert excinfo.value.kind == ErrorKind.UNCONFIGURED
        mock_openai_class.assert_not_called()


class TestModelClientGenerate:
    """Test request shape and reply extraction."""

    def setup_method(self):
        self.patcher = patch('ai_project_planner.sdk.openai_client.OpenAI')
        mock_openai_class = self.patcher.start()
        self.mock_create = mock_openai_class.return_value.chat.completions.create
        self.client = ModelClient(ModelConfig(name="gpt-4o-mini", temperature=0.7, max_tokens=4000),
                                  api_key="sk-test")

    def teardown_method(self):
        self.patcher.stop()

    def test_returns_reply_content(self):
        self.mock_create.return_value = reply('{"title": "X"}')

        assert self.client.generate("prompt", system_message="system") == '{"title": "X"}'

        self.mock_create.assert_called_once_with(
            model="gpt-4o-mini",
            messages=[
                {"role": "system", "content": "system"},
                {"role": "user", "content": "prompt"},
            ],
            temperature=0.7,
            max_tokens=4000
        )

    def test_without_system_message(self):
        self.mock_create.return_value = reply("ok")

        self.client.generate("prompt")

        messages = self.mock_create.call_args.kwargs["messages"]
        assert messages == [{"role": "user", "content": "prompt"}]

    @pytest.mark.parametrize("error_cls, status_code, kind", [
        (RateLimitError, 429, ErrorKind.RATE_LIMITED),
        (AuthenticationError, 401, ErrorKind.AUTH_ERROR),
        (InternalServerError, 500, ErrorKind.SERVICE_UNAVAILABLE),
        (InternalServerError, 503, ErrorKind.SERVICE_UNAVAILABLE),
        (BadRequestError, 400, ErrorKind.TRANSPORT_ERROR),
    ])
    def test_http_failures_are_classified(self, error_cls, status_code, kind):
        self.mock_create.side_effect = status_error(error_cls, status_code)

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert excinfo.value.kind == kind
        assert f"HTTP {status_code}" in excinfo.value.detail

    def test_rate_limit_is_not_generic(self):
        self.mock_create.side_effect = status_error(RateLimitError, 429)

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert excinfo.value.kind == ErrorKind.RATE_LIMITED
        assert excinfo.value.kind != ErrorKind.TRANSPORT_ERROR

    def test_provider_text_is_truncated(self):
        self.mock_create.side_effect = status_error(InternalServerError, 502, "x" * 5000)

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert len(excinfo.value.detail) <= 203

    @pytest.mark.parametrize("error", [
        APIConnectionError(request=REQUEST),
        APITimeoutError(request=REQUEST),
    ])
    def test_transport_failures(self, error):
        self.mock_create.side_effect = error

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert excinfo.value.kind == ErrorKind.TRANSPORT_ERROR

    def test_empty_choices_is_malformed(self):
        response = Mock()
        response.choices = []
        self.mock_create.return_value = response

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert excinfo.value.kind == ErrorKind.MALFORMED_UPSTREAM_RESPONSE

    def test_missing_content_is_malformed(self):
        self.mock_create.return_value = reply(None)

        with pytest.raises(ModelClientError) as excinfo:
            self.client.generate("prompt")

        assert excinfo.value.kind == ErrorKind.MALFORMED_UPSTREAM_RESPONSE


@pytest.mark.parametrize("status_code, kind", [
    (401, ErrorKind.AUTH_ERROR),
    (403, ErrorKind.AUTH_ERROR),
    (429, ErrorKind.RATE_LIMITED),
    (500, ErrorKind.SERVICE_UNAVAILABLE),
    (599, ErrorKind.SERVICE_UNAVAILABLE),
    (404, ErrorKind.TRANSPORT_ERROR),
])
def test_classify_status_code(status_code, kind):
    assert classify_status_code(status_code) == kind
