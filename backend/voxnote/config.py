"""Application settings: YAML + pydantic-settings, environment variables take precedence."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

BASE_DIR = Path(__file__).resolve().parent.parent

_CONFIG_PATH = BASE_DIR / "config" / "config.yaml"


class OpenAIConfig(BaseModel):
    """OpenAI credentials and models for Whisper transcription and chat enrichment."""

    api_key: str = Field(default="", description="OpenAI API key")
    base_url: str | None = Field(default=None, description="Override for OpenAI-compatible gateways")
    transcription_model: str = Field(default="whisper-1")
    enrichment_model: str = Field(default="gpt-4-turbo")

    @property
    def valid(self) -> bool:
        return bool(self.api_key)


class VolcengineConfig(BaseModel):
    """Volcengine (Doubao) ASR and Ark credentials."""

    app_key: str = Field(default="", description="X-Api-App-Key")
    access_key: str = Field(default="", description="X-Api-Access-Key")
    resource_id: str = Field(default="volc.seedasr.sauc.duration", description="X-Api-Resource-Id")
    ark_api_key: str = Field(default="", description="Ark API key")
    ark_model_id: str = Field(default="", description="Ark endpoint / model id")

    @property
    def valid(self) -> bool:
        return bool(self.app_key and self.access_key and self.resource_id)

    @property
    def ark_valid(self) -> bool:
        return bool(self.ark_api_key and self.ark_model_id)


class Settings(BaseSettings):
    """Priority: environment variables > config.yaml > defaults."""

    model_config = SettingsConfigDict(extra="ignore", env_nested_delimiter="__")

    database_url: str = Field(default="sqlite:///./voxnote.db")
    upload_dir: str = Field(default="public/uploads", description="Blob directory, relative to BASE_DIR")
    public_asset_root: str = Field(default="/uploads", description="URL prefix the blobs are served under")
    max_upload_mb: int = Field(default=100, ge=1)
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    log_level: str = Field(default="INFO")

    transcription_engine: Literal["openai", "volcengine"] = "openai"
    enrichment_engine: Literal["openai", "ark"] = "openai"
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    volcengine: VolcengineConfig = Field(default_factory=VolcengineConfig)

    @property
    def upload_path(self) -> Path:
        return BASE_DIR / Path(self.upload_dir)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=_CONFIG_PATH, yaml_file_encoding="utf-8"),
        )


settings = Settings()
