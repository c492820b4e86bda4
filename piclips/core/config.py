from typing import List, Optional
from pydantic import BaseModel, Field, HttpUrl
from pydantic_settings import BaseSettings
from enum import Enum

class BaseConfig(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name":True
    }

class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class CompressionType(str, Enum):
    GZIP = "gz"
    BZIP2 = "bz2"
    ZIP = "zip"

class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"

class AppSettings(BaseSettings):
    app_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        alias="APP_NAME"
    )
    app_port: int = Field(
        ...,
        ge=1,
        le=65535,
        alias="APP_PORT"
    )

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_reload: bool = Field(default=False)
    app_env: Environment = Field(default=Environment.PRODUCTION, alias="APP_ENV")
    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    uploads_dir: str = Field(default="uploads", alias="UPLOADS_DIR")
    request_timeout_seconds: float = Field(default=300, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    avatar_max_bytes: int = Field(default=5 * 1024 * 1024, ge=1, alias="AVATAR_MAX_BYTES")

    app_log_level: LogLevel = Field(default=LogLevel.INFO, alias="APP_LOG_LEVEL")
    log_format: str = Field(default="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}", alias="LOG_FORMAT")
    log_file: Optional[str] = Field(default="logs/app.log", alias="LOG_FILE")
    log_rotation: str = Field(default="1 day", alias="LOG_ROTATION")
    log_compression: CompressionType = Field(default=CompressionType.GZIP, alias="LOG_COMPRESSION")

    model_config = BaseConfig.model_config

    @property
    def debug(self) -> bool:
        return self.app_env == Environment.DEVELOPMENT

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

class DatabaseSettings(BaseSettings):
    database_url: str = Field(..., min_length=1, alias="DATABASE_URL")
    debug_sql: bool = Field(default=False, alias="DEBUG_SQL")

    model_config = BaseConfig.model_config

class JWTSettings(BaseSettings):
    secret_key: str = Field(..., min_length=32, alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24, ge=1, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    model_config = BaseConfig.model_config

class StorageSettings(BaseSettings):
    aws_region: str = Field(..., min_length=1, alias="AWS_REGION")
    bucket_name: str = Field(..., min_length=1, alias="S3_BUCKET_NAME")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")
    endpoint_url: Optional[str] = Field(default=None, alias="S3_ENDPOINT_URL")
    signed_url_expires_in: int = Field(default=3600, ge=1, alias="SIGNED_URL_EXPIRES_IN")

    model_config = BaseConfig.model_config

class PiNetworkSettings(BaseSettings):
    platform_api_url: HttpUrl = Field(default="https://api.minepi.com", alias="PI_PLATFORM_API_URL")
    verify_identity: bool = Field(default=True, alias="PI_VERIFY_IDENTITY")
    timeout_seconds: float = Field(default=10.0, gt=0, alias="PI_TIMEOUT_SECONDS")

    model_config = BaseConfig.model_config


class Settings(BaseModel):
    app: AppSettings
    database: DatabaseSettings
    jwt: JWTSettings
    storage: StorageSettings
    pi_network: PiNetworkSettings


def load_settings() -> Settings:
    return Settings(
        app=AppSettings(),
        database=DatabaseSettings(),
        jwt=JWTSettings(),
        storage=StorageSettings(),
        pi_network=PiNetworkSettings(),
    )
