from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    # Checked per request; a missing key answers 500
    openai_api_key: Optional[str] = None
    allowed_origins: str = "http://localhost:3000"

    # Optional: set to use OpenRouter or any OpenAI-compatible provider
    # e.g. https://openrouter.ai/api/v1
    openai_base_url: Optional[str] = None

    chat_model: str = "gpt-3.5-turbo-1106"
    temperature: float = 0.7

    # Quiz generation tuning
    max_questions: int = Field(50, ge=1)
    batch_size: int = Field(5, ge=1)
    batch_max_retries: int = Field(2, ge=0)
    retry_backoff_seconds: float = Field(1.0, ge=0)
    request_timeout_seconds: float = Field(30.0, gt=0)
    # "strict": count mismatch fails the batch attempt
    # "truncate": extra questions are dropped, short non-empty batches accepted
    count_policy: Literal["strict", "truncate"] = "strict"

    log_level: str = "INFO"

    @property
    def origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",")]

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
