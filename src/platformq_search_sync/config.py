"""
Search Sync Configuration
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings, read from the environment or a .env file"""

    SERVICE_NAME: str = "search-sync"

    # Elasticsearch v8
    ES_HOST: str = "http://elasticsearch:9200"
    ES_INDEX_NAME: str = "platformq_records"
    ES_TIMEOUT: int = 30
    ES_USE_SSL: bool = False
    ES_VERIFY_CERTS: bool = False
    ES_USERNAME: Optional[str] = None
    ES_PASSWORD: Optional[str] = None

    # Indexing behaviour
    INDEXING_DISABLED: bool = False
    REFRESH_ON_WRITE: bool = True
    BULK_CHUNK_SIZE: int = 500

    # Transient failure handling
    RETRY_ATTEMPTS: int = 3
    RETRY_WAIT_MAX: int = 10  # seconds

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
