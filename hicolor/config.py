from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

VERSION = "0.3.0"


class Settings(BaseSettings):
    port: int = Field(default=8000, alias="PORT")
    max_concurrent_requests: int = Field(default=2, alias="MAX_CONCURRENT_REQUESTS")
    max_upload_size: int = Field(default=10 * 1024 * 1024, alias="MAX_UPLOAD_SIZE")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    default_variant: str = Field(default="6", alias="HICOLOR_VARIANT")
    default_dither: str = Field(default="bayer", alias="HICOLOR_DITHER")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
