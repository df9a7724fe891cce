# src/review_watch/providers/gemini.py
import logging
import httpx
from .base import ReviewBackend
from review_watch.errors import BackendNonZeroExit, BackendTimeout, BackendUnavailable, MalformedOutput


logger = logging.getLogger(__name__)


class GeminiBackend(ReviewBackend):
    name = "gemini"
    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: str, model: str | None = None, timeout: float = 60.0):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout

    def invoke(self, prompt: str) -> str:
        try:
            with httpx.Client() as client:
                response = client.post(
                    f"{self.API_URL.format(model=self.model)}?key={self.api_key}",
                    json={
                        "contents": [{
                            "parts": [{"text": prompt}]
                        }]
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise BackendTimeout(f"Gemini request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise BackendNonZeroExit(
                "Gemini returned an error status",
                exit_code=e.response.status_code,
                stderr=e.response.text[:500],
            ) from e
        except httpx.TransportError as e:
            raise BackendUnavailable(f"Gemini is unreachable: {e}") from e

        try:
            data = response.json()
            text = "".join(part.get("text", "") for part in data["candidates"][0]["content"]["parts"])
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedOutput(f"Unexpected Gemini response: {response.text[:200]}") from e

        logger.debug(f"Gemini response length: {len(text)} chars")
        if not text.strip():
            raise MalformedOutput("Gemini returned an empty review")
        return text
