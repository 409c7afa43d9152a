from typing import List, Tuple

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the results proxy."""

    model_config = SettingsConfigDict(
        env_prefix="RESULTS_PROXY_", env_file=".env", case_sensitive=False
    )

    # Upstream
    upstream_base_url: str = "https://beu-bih.ac.in/backend/v1/result/get-result"
    upstream_referer_base: str = "https://beu-bih.ac.in/result-two/some-exam"
    upstream_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    fetch_timeout_ms: int = 8000

    # Batching
    default_batch_size: int = 5
    max_batch_size: int = 120
    term_ranges: List[Tuple[int, int]] = [(10, 60), (901, 960)]

    # Response shaping
    item_redacted_fields: List[str] = ["father_name", "mother_name"]
    aggregate_redacted_fields: List[str] = []
    cache_control: str = "s-maxage=300, stale-while-revalidate=600"
    cors_allow_origin: str = "*"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"  # options: json, text

    @field_validator("fetch_timeout_ms", "default_batch_size", "max_batch_size")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("term_ranges")
    @classmethod
    def check_term_ranges(cls, v: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
        for start, end in v:
            if not 0 <= start <= end <= 999:
                raise ValueError(f"invalid term range {start}-{end}")
        return v

    @model_validator(mode="after")
    def default_batch_within_ceiling(self) -> "Settings":
        if self.default_batch_size > self.max_batch_size:
            raise ValueError(
                f"default_batch_size {self.default_batch_size} exceeds "
                f"max_batch_size {self.max_batch_size}"
            )
        return self

    @property
    def fetch_timeout(self) -> float:
        return self.fetch_timeout_ms / 1000


settings = Settings()
