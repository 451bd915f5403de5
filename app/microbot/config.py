"""
Purpose: Runtime configuration and logging setup.
Settings come from MICROBOT_* environment variables and an optional .env file.
"""

from __future__ import annotations
import logging
import sys
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Annotated

from .models import LLMSettings

load_dotenv()


class LLMSettingsConfig(BaseModel):
    model: Annotated[str, Field(default="gpt-4o-mini")]
    temperature: Annotated[float, Field(default=0.7)]
    top_p: Annotated[float, Field(default=0.8)]
    max_tokens: Annotated[int, Field(default=1024)]
    frequency_penalty: Annotated[float, Field(default=1.0)]
    presence_penalty: Annotated[float, Field(default=0.3)]

    def to_settings(self) -> LLMSettings:
        return LLMSettings(**self.model_dump())


class Settings(BaseSettings):
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "MICROBOT_API_KEY", "AIML_API_KEY", "OPENAI_API_KEY", "api_key"
        ),
    )
    api_base: Annotated[str, Field(default="https://api.aimlapi.com/v1")]
    llm: LLMSettingsConfig = Field(default_factory=LLMSettingsConfig)
    stream: Annotated[bool, Field(default=True)]

    # When set, the app posts to this endpoint instead of calling the provider.
    completion_endpoint: Annotated[Optional[str], Field(default=None)]
    request_timeout: Annotated[float, Field(default=30.0)]

    storage_dir: Annotated[str, Field(default=".microbot")]
    transcription_model: Annotated[str, Field(default="whisper-1")]
    log_level: Annotated[str, Field(default="INFO")]

    model_config = SettingsConfigDict(
        env_prefix="MICROBOT_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str | int = logging.INFO) -> None:
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[console_handler])
