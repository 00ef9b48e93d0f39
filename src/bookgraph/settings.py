from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GENERIC_SUBJECTS = frozenset(
    {
        "novels",
        "fiction",
        "american literature",
        "english literature",
        "children's literature",
        "juvenile fiction",
        "biography",
        "autobiography",
        "literature",
        "history",
        "poetry",
        "drama",
    }
)


class BookGraphSettings(BaseSettings):
    """Unified configuration for bookgraph.

    Environment variables are prefixed with BOOKGRAPH_.
    """

    model_config = SettingsConfigDict(env_prefix="BOOKGRAPH_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Open Library ---
    openlibrary_url: str = "https://openlibrary.org"
    user_agent: str = "bookgraph/0.1 (+https://openlibrary.org/developers/api)"
    per_query_limit: int = Field(default=5, ge=1, le=100)
    subject_limit: int = Field(default=5, ge=1, le=10, description="Subjects kept per work")
    http_timeout: float = Field(default=20.0, gt=0)
    http_retries: int = Field(default=3, ge=1, description="Attempts for transient transport errors")

    # --- Aggregation ---
    recommendation_cap: int = Field(default=10, ge=1)
    max_concurrency: int = Field(default=4, ge=1, description="In-flight lookups per strategy")
    intersection_language: str | None = Field(default="eng")
    generic_subjects: frozenset[str] = Field(
        default=DEFAULT_GENERIC_SUBJECTS,
        description="Subjects too broad to query (JSON list in the environment)",
    )

    # --- HTTP ---
    bind_host: str = "127.0.0.1"
    bind_port: int = 8090
    api_key: str | None = Field(default=None, description="If set, require X-API-Key")

    @field_validator("generic_subjects")
    @classmethod
    def _lower_generic(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(s.strip().lower() for s in v if s.strip())


settings = BookGraphSettings()


def configure_logging(level: str | None = None) -> None:
    import logging

    level = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)
