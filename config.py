from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings

from database_schema import DB_PATH

DEFAULT_CLASSIFIER_URL = "https://serverless.roboflow.com/innovyom-1s6fe/detect-and-classify"

class Settings(BaseSettings):
    APP_NAME: str = "Breed Classification API"
    APP_ENV: str = "development"
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    # Provisioned for a future hosted-inference client, not read by the classifier call
    HUGGING_FACE_ACCESS_TOKEN: Optional[str] = None

    CLASSIFIER_URL: str = DEFAULT_CLASSIFIER_URL
    CLASSIFIER_API_KEY: str
    CLASSIFIER_USE_CACHE: bool = True
    MODEL_VERSION: str = "resnet-50-v1.0"

    HTTP_TIMEOUT_SECONDS: float = 120.0
    HTTP_RETRIES: int = 0

    DATASTORE_BACKEND: str = "rest"  # "rest" | "sqlite"
    SQLITE_PATH: str = str(DB_PATH)

    INVALID_URL_AS_CLIENT_ERROR: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

@lru_cache
def get_settings() -> Settings:
    return Settings()
