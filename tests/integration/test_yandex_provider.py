# tests/integration/test_yandex_provider.py
import httpx
import openai
import pytest
from unittest.mock import MagicMock
from review_watch.errors import BackendNonZeroExit, BackendTimeout, BackendUnavailable, MalformedOutput
from review_watch.providers.yandex import YandexBackend


def _mock_completion(text: str | None):
    """Create a mock ChatCompletion response."""
    choice = MagicMock()
    choice.message.content = text
    completion = MagicMock()
    completion.choices = [choice]
    return completion


def _backend(**kwargs) -> YandexBackend:
    backend = YandexBackend(api_key="test-key", folder_id="test-folder", **kwargs)
    backend.client = MagicMock()
    return backend


_REQUEST = httpx.Request("POST", "https://llm.api.cloud.yandex.net/v1/chat/completions")


@pytest.mark.integration
def test_yandex_backend_returns_review():
    backend = _backend()
    backend.client.chat.completions.create.return_value = _mock_completion("✓ Code looks good")

    review = backend.invoke("Review this code")

    assert review == "✓ Code looks good"
    backend.client.chat.completions.create.assert_called_once()
    call_kwargs = backend.client.chat.completions.create.call_args.kwargs
    assert call_kwargs["model"] == "gpt://test-folder/yandexgpt/latest"
    assert call_kwargs["messages"] == [{"role": "user", "content": "Review this code"}]


@pytest.mark.integration
def test_yandex_backend_custom_model():
    backend = _backend(model="yandexgpt-lite/latest")
    backend.client.chat.completions.create.return_value = _mock_completion("ok")

    backend.invoke("Review this code")

    call_kwargs = backend.client.chat.completions.create.call_args.kwargs
    assert call_kwargs["model"] == "gpt://test-folder/yandexgpt-lite/latest"


@pytest.mark.integration
def test_yandex_backend_empty_response():
    backend = _backend()
    backend.client.chat.completions.create.return_value = _mock_completion(None)

    with pytest.raises(MalformedOutput):
        backend.invoke("Review this code")


@pytest.mark.integration
def test_yandex_backend_timeout():
    backend = _backend()
    backend.client.chat.completions.create.side_effect = openai.APITimeoutError(request=_REQUEST)

    with pytest.raises(BackendTimeout):
        backend.invoke("Review this code")


@pytest.mark.integration
def test_yandex_backend_connection_error():
    backend = _backend()
    backend.client.chat.completions.create.side_effect = openai.APIConnectionError(request=_REQUEST)

    with pytest.raises(BackendUnavailable):
        backend.invoke("Review this code")


@pytest.mark.integration
def test_yandex_backend_error_status():
    backend = _backend()
    response = httpx.Response(401, request=_REQUEST, json={"error": "unauthorized"})
    backend.client.chat.completions.create.side_effect = openai.AuthenticationError(
        "unauthorized", response=response, body=None
    )

    with pytest.raises(BackendNonZeroExit) as exc_info:
        backend.invoke("Review this code")

    assert exc_info.value.exit_code == 401
