# src/review_watch/providers/base.py
from abc import ABC, abstractmethod


class ReviewBackend(ABC):
    name: str = "backend"

    @abstractmethod
    def invoke(self, prompt: str) -> str:
        """Send prompt to the AI backend and return the review text verbatim.

        Raises a BackendError subclass on failure. Implementations do not retry.
        """
        pass
