"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Per-tier sampling options always cover normal, strict and fallback

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from explicaai.core.domain_types import PromptVariant
from explicaai.core.explanation_types import GenerationOptions


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, protected_namespaces=(),
    )

    # Database
    database_url: str = (
        "postgresql+asyncpg://explicaai:explicaai@db:5432/explicaai"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs use postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic
    anthropic_api_key: str = "sk-ant-placeholder"
    model_name: str = "claude-haiku-4-5"
    model_max_tokens: int = 2000
    model_timeout_seconds: int = 120
    model_max_retries: int = 2
    model_base_delay_ms: int = 1000
    model_max_delay_ms: int = 30_000
    model_send_top_p: bool = False

    # Sampling per tier (normal → strict → answer-only fallback)
    normal_temperature: float = 0.3
    normal_top_p: float = 0.9
    normal_top_k: int = 40
    strict_temperature: float = 0.2
    strict_top_p: float = 0.9
    strict_top_k: int = 40
    fallback_temperature: float = 0.1
    fallback_top_p: float = 0.8
    fallback_top_k: int = 40

    # Problems
    classification_cache_size: int = 100

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def tier_options(self) -> dict[PromptVariant, GenerationOptions]:
        return {
            PromptVariant.NORMAL: GenerationOptions(
                self.normal_temperature, self.normal_top_p, self.normal_top_k,
            ),
            PromptVariant.STRICT: GenerationOptions(
                self.strict_temperature, self.strict_top_p, self.strict_top_k,
            ),
            PromptVariant.FALLBACK: GenerationOptions(
                self.fallback_temperature, self.fallback_top_p, self.fallback_top_k,
            ),
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
