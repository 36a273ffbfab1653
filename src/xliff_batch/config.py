from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    openai_api_key: str
    openai_base_url: str = "https://api.openai.com/v1"
    model: str = Field("gpt-4o-mini", validation_alias="TRANSLATION_MODEL")
    completion_window: str = Field("24h", validation_alias="BATCH_COMPLETION_WINDOW")
    poll_interval: float = Field(60.0, gt=0, validation_alias="BATCH_POLL_INTERVAL")
    request_timeout: float = Field(60.0, gt=0, validation_alias="BATCH_REQUEST_TIMEOUT")
    file_extension: str = Field(".xlf", validation_alias="XLIFF_FILE_EXTENSION")
    staging_dir: Optional[Path] = Field(None, validation_alias="BATCH_STAGING_DIR")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)
