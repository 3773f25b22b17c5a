"""Transcript enrichment: markdown formatting plus title/description generation."""

from loguru import logger
from openai import AsyncOpenAI
from pydantic import ValidationError

from voxnote.config import OpenAIConfig
from voxnote.schemas.transcription import EnrichmentPayload
from voxnote.services.base import Enricher

SYSTEM_PROMPT = """\
You are an expert editor.
1. Format the transcript below as readable markdown with proper paragraphs, punctuation and capitalization.
2. If the user did NOT provide a title (it is MISSING), generate a concise, relevant title (10 words at most).
3. If the user did NOT provide a description (it is MISSING), generate a short summary (30 words at most).
4. Keep the original language of the audio; never translate.

Return ONLY a VALID JSON object with this structure:
{
  "formattedText": "string (markdown)",
  "generatedTitle": "string (optional, only if needed)",
  "generatedDescription": "string (optional, only if needed)"
}
"""

MISSING = "MISSING"


def build_user_content(transcript: str, name: str | None, description: str | None) -> str:
    return (
        f"Transcript:\n{transcript}\n\n"
        f"Existing title: {name or MISSING}\n"
        f"Existing description: {description or MISSING}"
    )


def parse_enrichment(content: str | None) -> EnrichmentPayload | None:
    """Validate the model reply; ``None`` when it is empty or not the expected object."""
    if not content or not content.strip():
        logger.warning("enrichment returned no content")
        return None
    try:
        return EnrichmentPayload.model_validate_json(content)
    except ValidationError as e:
        logger.warning(f"enrichment reply rejected: {e.error_count()=} {content[:200]=}")
        return None


class OpenAIEnricher(Enricher):
    name = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4-turbo") -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, config: OpenAIConfig) -> "OpenAIEnricher":
        client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        return cls(client, model=config.enrichment_model)

    async def complete_json(self, system_prompt: str, user_content: str) -> str | None:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            response_format={"type": "json_object"},
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content
