"""
Seller Economics Aggregation Engine
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type
safety. Each subsystem reads its own prefixed section.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Aggregation Engine Configuration"""

    model_config = SettingsConfigDict(env_prefix="ECONOMICS_")

    max_lookback_years: int = Field(default=2, ge=1, description="Oldest startDate accepted, in years before today")
    default_date_granularity: str = Field(default="DAY", description="Date granularity when aggregateBy.date is absent")
    default_product_granularity: str = Field(default="MSKU", description="Product granularity when aggregateBy.productId is absent")
    worker_count: int = Field(default=4, ge=1, description="Threads folding partitions; 1 folds inline")
    known_marketplace_ids: List[str] = Field(
        default_factory=list,
        description="Marketplace registry; empty disables the recognition check",
    )
    query_timeout_seconds: Optional[float] = Field(default=None, gt=0, description="Per-query deadline")

    @field_validator("default_date_granularity", "default_product_granularity")
    @classmethod
    def normalize_enum_name(cls, v: str) -> str:
        """Enum defaults are matched by upper-case name"""
        return v.strip().upper()


class DataLakeSettings(BaseSettings):
    """Fact Storage Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    lake_path: str = Field(default="./data", description="Data lake root path")
    facts_path: str = Field(default="./data/curated/facts", description="Directory holding seller fact files")
    file_format: str = Field(default="parquet", description="Fact file format: parquet, csv or jsonl")

    @field_validator("file_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate fact file format"""
        allowed = ["parquet", "csv", "jsonl"]
        if v.lower() not in allowed:
            raise ValueError(f"File format must be one of: {allowed}")
        return v.lower()


class SecuritySettings(BaseSettings):
    """HTTP Surface Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="seller-economics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    engine: EngineSettings = Field(default_factory=EngineSettings)
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
