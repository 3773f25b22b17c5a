"""Builds the capability clients once at startup from settings."""

from loguru import logger

from voxnote.config import Settings
from voxnote.services.base import Enricher, Transcriber


def build_transcriber(settings: Settings) -> Transcriber | None:
    """``None`` when the selected engine has no credentials."""
    engine = settings.transcription_engine
    if engine == "volcengine":
        if not settings.volcengine.valid:
            logger.warning("Volcengine ASR is not configured (VOLCENGINE__APP_KEY, VOLCENGINE__ACCESS_KEY)")
            return None
        from voxnote.services.volcengine import VolcengineTranscriber

        return VolcengineTranscriber(settings.volcengine)

    if not settings.openai.valid:
        logger.warning("OpenAI transcription is not configured (OPENAI__API_KEY)")
        return None
    from voxnote.services.whisper import OpenAITranscriber

    return OpenAITranscriber.from_config(settings.openai)


def build_enricher(settings: Settings) -> Enricher | None:
    """``None`` when the selected engine has no credentials."""
    engine = settings.enrichment_engine
    if engine == "ark":
        if not settings.volcengine.ark_valid:
            logger.warning("Ark enrichment is not configured (VOLCENGINE__ARK_API_KEY, VOLCENGINE__ARK_MODEL_ID)")
            return None
        from voxnote.services.ark_enrichment import ArkEnricher

        return ArkEnricher(settings.volcengine)

    if not settings.openai.valid:
        logger.warning("OpenAI enrichment is not configured (OPENAI__API_KEY)")
        return None
    from voxnote.services.enrichment import OpenAIEnricher

    return OpenAIEnricher.from_config(settings.openai)
