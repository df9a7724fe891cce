# src/review_watch/providers/yandex.py
import logging
import openai
from openai import OpenAI
from .base import ReviewBackend
from review_watch.errors import BackendNonZeroExit, BackendTimeout, BackendUnavailable, MalformedOutput


logger = logging.getLogger(__name__)


class YandexBackend(ReviewBackend):
    name = "yandex"
    BASE_URL = "https://llm.api.cloud.yandex.net/v1"
    DEFAULT_MODEL = "yandexgpt/latest"

    def __init__(self, api_key: str, folder_id: str, model: str | None = None, timeout: float = 60.0):
        self.api_key = api_key
        self.folder_id = folder_id
        self.model = model or self.DEFAULT_MODEL
        self.client = OpenAI(
            api_key=api_key,
            base_url=self.BASE_URL,
            default_headers={"x-folder-id": folder_id},
            timeout=timeout,
            max_retries=0,
        )

    def invoke(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=f"gpt://{self.folder_id}/{self.model}",
                messages=[{"role": "user", "content": prompt}],
                temperature=0.3,
                max_tokens=2000,
            )
        except openai.APITimeoutError as e:
            raise BackendTimeout("Yandex request timed out") from e
        except openai.APIConnectionError as e:
            raise BackendUnavailable(f"Yandex is unreachable: {e}") from e
        except openai.APIStatusError as e:
            raise BackendNonZeroExit("Yandex returned an error status", exit_code=e.status_code, stderr=str(e)) from e

        try:
            text = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise MalformedOutput(f"Unexpected Yandex response: {response}") from e

        logger.info(f"Yandex response length: {len(text)} chars")

        if not text.strip():
            raise MalformedOutput(f"Yandex returned empty response. Full API response: {response}")
        return text
