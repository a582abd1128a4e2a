"""Application configuration."""

from pathlib import Path
from typing import Optional
from urllib.parse import parse_qs, urlencode

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


def find_env_file() -> Optional[Path]:
    """Find .env file in multiple possible locations."""
    import os
    current_dir = os.path.dirname(os.path.abspath(__file__))

    possible_paths = [
        os.path.join(os.getcwd(), ".env"),
        os.path.join(current_dir, ".env"),
        os.path.join(os.path.dirname(current_dir), ".env"),
        os.path.join(os.path.dirname(os.path.dirname(current_dir)), ".env"),
    ]

    for path_str in possible_paths:
        if os.path.exists(path_str):
            path = Path(path_str)
            LOGGER.info(f"Found .env file at: {path}")
            return path

    LOGGER.warning("No .env file found in expected locations")
    return None


ENV_FILE = find_env_file()

_MODEL_CONFIG = SettingsConfigDict(
    env_file=str(ENV_FILE) if ENV_FILE else None,
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
    env_prefix="",
)


class DatabaseSettings(BaseSettings):
    """Database connection and pool settings."""
    url: str = Field(default="", validation_alias="DATABASE_URL")
    pool_size: int = Field(default=10, validation_alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(default=20, validation_alias="DATABASE_MAX_OVERFLOW")
    echo: bool = Field(default=False, validation_alias="DATABASE_ECHO")

    model_config = _MODEL_CONFIG

    @property
    def connection_url(self) -> str:
        """Get the connection URL with the asyncpg driver prefix."""
        raw_url = self.url
        if not raw_url:
            return ""

        if raw_url.startswith("postgres://") or raw_url.startswith("postgresql://"):
            _, rest = raw_url.split("://", 1)

            if "?" in rest:
                path, query = rest.split("?", 1)
                params = parse_qs(query)
                # asyncpg spells it `ssl`
                if "sslmode" in params:
                    params["ssl"] = params.pop("sslmode")
                rest = f"{path}?{urlencode(params, doseq=True)}"

            return f"postgresql+asyncpg://{rest}"

        return raw_url


class SupabaseSettings(BaseSettings):
    """Supabase storage settings used for authority documents."""
    url: str = Field(default="", validation_alias="SUPABASE_URL")
    service_role_key: str = Field(default="", validation_alias="SUPABASE_SERVICE_ROLE_KEY")
    authorities_bucket: str = Field(default="authorities", validation_alias="AUTHORITIES_BUCKET")

    model_config = _MODEL_CONFIG


class VectorStoreSettings(BaseSettings):
    """OpenAI vector store used for authority search sync."""
    api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
    authorities_store_id: str = Field(default="", validation_alias="OPENAI_VECTOR_STORE_AUTHORITIES_ID")

    model_config = _MODEL_CONFIG

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.authorities_store_id)


class IngestionSettings(BaseSettings):
    """Crawl and download behaviour."""
    download_timeout_seconds: float = Field(default=20.0, validation_alias="DOWNLOAD_TIMEOUT_SECONDS")
    adapter_fetch_timeout_seconds: float = Field(default=20.0, validation_alias="ADAPTER_FETCH_TIMEOUT_SECONDS")
    user_agent: str = Field(default="lextrust-crawler/0.1 (+authorities ingestion)", validation_alias="CRAWLER_USER_AGENT")
    default_residency_zone: str = Field(default="ohada", validation_alias="DEFAULT_RESIDENCY_ZONE")
    use_fixture_fallback: bool = Field(default=True, validation_alias="USE_FIXTURE_FALLBACK")
    gazettes_page_size: int = Field(default=10, validation_alias="GAZETTES_PAGE_SIZE")

    model_config = _MODEL_CONFIG

    @field_validator("download_timeout_seconds")
    @classmethod
    def clamp_download_timeout(cls, value: float) -> float:
        """Keep network calls bounded to 15-30 seconds."""
        return min(max(value, 15.0), 30.0)


class LearningSettings(BaseSettings):
    """Learning loop windows and batch sizes."""
    collector_window_minutes: int = Field(default=10, validation_alias="LEARNING_COLLECTOR_WINDOW_MINUTES")
    diagnoser_lookback_runs: int = Field(default=200, validation_alias="LEARNING_LOOKBACK_RUNS")
    applier_batch_size: int = Field(default=50, validation_alias="LEARNING_APPLIER_BATCH_SIZE")
    processor_batch_size: int = Field(default=25, validation_alias="LEARNING_PROCESSOR_BATCH_SIZE")

    model_config = _MODEL_CONFIG


class NotifierSettings(BaseSettings):
    """Alert transport settings."""
    webhook_url: str = Field(default="", validation_alias="ALERT_WEBHOOK_URL")

    model_config = _MODEL_CONFIG


class TemporalSettings(BaseSettings):
    """Temporal connection settings."""
    host: str = Field(default="localhost", validation_alias="TEMPORAL_HOST")
    port: int = Field(default=7233, validation_alias="TEMPORAL_PORT")
    namespace: str = Field(default="default", validation_alias="TEMPORAL_NAMESPACE")
    task_queue: str = Field(default="trust-pipeline-queue", validation_alias="TEMPORAL_TASK_QUEUE")

    model_config = _MODEL_CONFIG


class Settings(BaseSettings):
    """Unified application settings with nested models."""

    app_name: str = Field(default="LexTrust", validation_alias="APP_NAME")
    app_version: str = "0.1.0"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    default_org_id: str = Field(default="", validation_alias="DEFAULT_ORG_ID")

    http_timeout: int = 60

    db: DatabaseSettings = Field(default_factory=lambda: DatabaseSettings())
    supabase: SupabaseSettings = Field(default_factory=lambda: SupabaseSettings())
    vector_store: VectorStoreSettings = Field(default_factory=lambda: VectorStoreSettings())
    ingestion: IngestionSettings = Field(default_factory=lambda: IngestionSettings())
    learning: LearningSettings = Field(default_factory=lambda: LearningSettings())
    notifier: NotifierSettings = Field(default_factory=lambda: NotifierSettings())
    temporal: TemporalSettings = Field(default_factory=lambda: TemporalSettings())

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        return self.db.connection_url

    @property
    def supabase_url(self) -> str:
        return self.supabase.url

    @property
    def supabase_service_role_key(self) -> str:
        return self.supabase.service_role_key

    @property
    def temporal_host(self) -> str:
        return self.temporal.host

    @property
    def temporal_port(self) -> int:
        return self.temporal.port

    @property
    def temporal_namespace(self) -> str:
        return self.temporal.namespace

    @property
    def temporal_task_queue(self) -> str:
        return self.temporal.task_queue


settings = Settings()

LOGGER.info(f"Settings initialized with environment: {settings.environment}")
LOGGER.info(f"Vector store sync configured: {settings.vector_store.is_configured}")
