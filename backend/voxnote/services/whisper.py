"""OpenAI Whisper transcription."""

from loguru import logger
from openai import AsyncOpenAI

from voxnote.config import OpenAIConfig
from voxnote.services.base import Transcriber


class OpenAITranscriber(Transcriber):
    name = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = "whisper-1") -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, config: OpenAIConfig) -> "OpenAITranscriber":
        client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        return cls(client, model=config.transcription_model)

    async def transcribe(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        file = (filename, data, content_type) if content_type else (filename, data)
        response = await self.client.audio.transcriptions.create(model=self.model, file=file)
        text = response.text or ""
        logger.debug(f"{self.model=} {len(text)=}")
        return text
