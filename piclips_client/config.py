from pydantic import Field
from pydantic_settings import BaseSettings

from piclips.core.config import BaseConfig


class ClientSettings(BaseSettings):
    backend_api_url: str = Field(..., alias="BACKEND_API_URL")
    timeout_seconds: float = Field(default=30.0, gt=0, alias="CLIENT_TIMEOUT_SECONDS")

    model_config = BaseConfig.model_config
