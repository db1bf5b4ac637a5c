from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings backed by environment variables."""

    connections_config_path: str = Field(
        default="configs/connections.yaml",
        validation_alias="QUERYGATE_CONNECTIONS",
        description="Path to the YAML file listing database connections."
    )

    default_timeout_secs: float = Field(
        default=30,
        validation_alias="DEFAULT_TIMEOUT_SECS",
        description="Timeout applied when a request does not carry one."
    )
    default_page_size: int = Field(
        default=100,
        validation_alias="DEFAULT_PAGE_SIZE",
        description="Page size used when a page is requested without a size."
    )
    slow_query_ms: float = Field(
        default=1000,
        validation_alias="SLOW_QUERY_MS",
        description="Total time above which a query is reported as slow."
    )

    breaker_fail_max: int = Field(
        default=5,
        validation_alias="BREAKER_FAIL_MAX",
        description="Consecutive connection failures before a backend breaker opens."
    )
    breaker_reset_timeout: int = Field(
        default=30,
        validation_alias="BREAKER_RESET_TIMEOUT",
        description="Seconds an open breaker waits before letting a trial call through."
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(
        default=False,
        validation_alias="LOG_JSON",
        description="Emit one JSON object per log line."
    )

    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def configure_env(self, env: str) -> None:
        """Loads environment-specific variables and reloads settings."""
        if not env:
            return

        load_dotenv(f".env.{env}", override=True)
        new_settings = Settings()
        self.__dict__.update(new_settings.__dict__)


settings = Settings()

# Configure logging during import
from querygate.common.logger import configure_logging
configure_logging(
    level=settings.log_level,
    json_format=settings.log_json
)
