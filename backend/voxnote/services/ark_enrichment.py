"""Volcengine Ark enrichment: chat completion in JSON mode, run in a worker thread."""

import asyncio

from loguru import logger

from voxnote.config import VolcengineConfig
from voxnote.services.base import Enricher


class ArkEnricher(Enricher):
    name = "ark"

    def __init__(self, config: VolcengineConfig) -> None:
        from volcenginesdkarkruntime import Ark

        self.client = Ark(api_key=config.ark_api_key)
        self.model_id = config.ark_model_id

    def _complete_sync(self, system_prompt: str, user_content: str) -> str | None:
        logger.info(f"Ark enrichment input: {len(user_content)=}")
        completion = self.client.chat.completions.create(
            model=self.model_id,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            response_format={"type": "json_object"},
            temperature=0.3,
            thinking={"type": "disabled"},  # lower latency
        )
        if not completion.choices:
            return None
        content = completion.choices[0].message.content
        logger.info(f"Ark enrichment output: {len(content or '')=}")
        return content

    async def complete_json(self, system_prompt: str, user_content: str) -> str | None:
        return await asyncio.to_thread(self._complete_sync, system_prompt, user_content)
