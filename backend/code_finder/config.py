from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_token: Optional[str] = Field(default=None, alias="GITHUB_TOKEN")
    github_base_url: HttpUrl = Field(
        default="https://api.github.com", alias="GITHUB_BASE_URL"
    )
    github_proxy: Optional[str] = Field(default=None, alias="GITHUB_PROXY")
    github_timeout_seconds: float = Field(default=20, alias="GITHUB_TIMEOUT_SECONDS")
    github_per_page_max: int = Field(default=100, alias="GITHUB_PER_PAGE_MAX")

    # branch names tried when fetching file content
    primary_ref: str = Field(default="main", alias="PRIMARY_REF")
    fallback_ref: str = Field(default="master", alias="FALLBACK_REF")

    fetch_concurrency: int = Field(default=5, ge=1, alias="FETCH_CONCURRENCY")
    keep_hits_without_metadata: bool = Field(
        default=False, alias="KEEP_HITS_WITHOUT_METADATA"
    )

    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"  # ignore unrelated env vars to avoid validation errors

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
