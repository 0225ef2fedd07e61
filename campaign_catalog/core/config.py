from pydantic_settings import BaseSettings
from functools import lru_cache
import os
from pathlib import Path


class Settings(BaseSettings):
    # Campaign backend
    api_base_url: str = "http://localhost:8080/api"
    request_timeout: float = 10.0
    connect_timeout: float = 5.0

    # Uploads are read fully into memory before encoding
    max_upload_bytes: int = 10 * 1024 * 1024

    # Pagination
    catalog_page_size: int = 12
    admin_page_size: int = 10

    # App
    app_name: str = "Campaign Catalog API"
    debug: bool = False
    service_name: str = "campaign-catalog"
    log_level: str = "INFO"

    # Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = ""

    class Config:
        # Look for .env.local file in the project root
        env_file = os.path.join(Path(__file__).parent.parent.parent, ".env.local")
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()
