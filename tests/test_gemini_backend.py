# tests/test_gemini_backend.py
import pytest
from review_watch.providers.base import ReviewBackend
from review_watch.providers.gemini import GeminiBackend


def test_backend_is_abstract():
    with pytest.raises(TypeError):
        ReviewBackend()


def test_gemini_backend_builds_request(httpx_mock):
    httpx_mock.add_response(
        url="https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent?key=test-key",
        json={
            "candidates": [{
                "content": {
                    "parts": [{
                        "text": "✓ No issues found"
                    }]
                }
            }]
        }
    )

    backend = GeminiBackend(api_key="test-key")
    review = backend.invoke("Review this code: print('hello')")

    assert review == "✓ No issues found"
    request = httpx_mock.get_request()
    assert b"print('hello')" in request.content
