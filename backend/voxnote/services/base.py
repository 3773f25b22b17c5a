"""Interfaces of the external capabilities the pipeline depends on."""

from abc import ABC, abstractmethod


class Transcriber(ABC):
    """Speech-to-text capability."""

    name: str = "transcriber"

    @abstractmethod
    async def transcribe(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        """Return the plain-text transcript of ``data``. Raise on any failure."""
        raise NotImplementedError


class Enricher(ABC):
    """Text-generation capability used for formatting and metadata."""

    name: str = "enricher"

    @abstractmethod
    async def complete_json(self, system_prompt: str, user_content: str) -> str | None:
        """Return the model's raw reply, expected to hold one JSON object."""
        raise NotImplementedError
