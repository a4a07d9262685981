"""Configuration loader for the Verbo reader."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from verbo_reader.models.bible import BibleVersion


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Verbo"
    version: str = "1.0.0"
    log_level: str = "INFO"


def _default_versions() -> list[BibleVersion]:
    return [
        BibleVersion(name="Reina Valera 1909", id="592420522e16049f-01"),
        BibleVersion(name="Nueva Biblia Viva", id="6b7f504f1b6050c1-01"),
        BibleVersion(name="Palabra de Dios para ti", id="48acedcf8595c754-01"),
        BibleVersion(name="Versión Biblia Libre", id="482ddd53705278cc-02"),
    ]


class BibleConfig(BaseModel):
    """Bible content API configuration."""

    base_url: str = "https://api.scripture.api.bible/v1/bibles"
    default_bible_id: str = "592420522e16049f-01"
    versions: list[BibleVersion] = Field(default_factory=_default_versions)
    request_timeout: float = 15.0

    @model_validator(mode="after")
    def _default_is_listed(self) -> "BibleConfig":
        if self.versions and self.default_bible_id not in {v.id for v in self.versions}:
            raise ValueError(
                f"default_bible_id '{self.default_bible_id}' is not one of the configured versions"
            )
        return self

    def version_name(self, bible_id: str) -> str:
        """Display name of an edition, or its id when it is not configured."""
        return next((v.name for v in self.versions if v.id == bible_id), bible_id)


class ReaderConfig(BaseModel):
    """Reading view behaviour."""

    highlight_timeout_seconds: float = 5.0
    scroll_max_attempts: int = 15
    scroll_interval_seconds: float = 0.2
    last_chapter_sentinel: int = 999


class ChatConfig(BaseModel):
    """Seed and fallback texts for the chat assistant."""

    guest_greeting: str = "Hi! I'm Verbo. Sign in to save your progress."
    user_greeting: str = "Hi {name}! I'm Verbo. Your conversations are now private and secure."
    cleared_message: str = "Chat reset."
    fallback_reply: str = "Sorry, I couldn't answer right now. Please try again."
    image_caption: str = "Here is an artistic rendering:"
    image_error: str = "Error generating the image."

    @field_validator("user_greeting")
    @classmethod
    def _greeting_names_user(cls, value: str) -> str:
        if "{name}" not in value:
            raise ValueError("user_greeting must contain a {name} placeholder")
        return value


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/remote.db"
    local_state_path: str = "./db/local.db"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    bible: BibleConfig = Field(default_factory=BibleConfig)
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # API keys loaded from environment
    api_bible_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Build the reader configuration.

    Values come from, in increasing precedence: model defaults, the YAML
    file, then the environment (``.env`` is read first). The environment
    supplies the API.Bible key and may override the default edition
    (``VERBO_BIBLE_ID``) and log level (``VERBO_LOG_LEVEL``).

    Args:
        config_path: Path to the YAML configuration file. A missing file
            means defaults only.

    Returns:
        The validated AppConfig.

    Raises:
        pydantic.ValidationError: If the default edition is not among the
            configured versions, or a chat text template is malformed.
    """
    load_dotenv()

    data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}

    bible_id = os.getenv("VERBO_BIBLE_ID")
    if bible_id:
        data.setdefault("bible", {})["default_bible_id"] = bible_id
    log_level = os.getenv("VERBO_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level.upper()
    data["api_bible_key"] = os.getenv("API_BIBLE_KEY")

    return AppConfig(**data)
