from pydantic_settings import BaseSettings
from typing import List


LLM_CONFIG = {
    "claude-sonnet-4": {
        "provider": "anthropic",
        "key_env": "ANTHROPIC_API_KEY",
        "deployment_name": "claude-sonnet-4-20250514",
    },
    "gpt-4o": {
        "provider": "azure_openai",
        "endpoint_env": "AZURE_OPENAI_URL",
        "key_env": "AZURE_OPENAI_4O_API_KEY",
        "version_env": "AZURE_OPENAI_4O_API_VERSION",
        "default_version": "2024-12-01-preview",
        "deployment_name": "gpt-4o",
    },
}


class Settings(BaseSettings):
    app_name: str = "Tabsplit API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API settings
    api_v1_str: str = "/api/v1"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    allowed_image_types: List[str] = ["image/jpeg", "image/png", "image/gif", "image/webp"]

    # Bill defaults
    default_tip_percent: float = 20.0

    # Receipt parsing
    receipt_model_name: str = "claude-sonnet-4"
    receipt_max_tokens: int = 1024

    # CORS settings
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"
        env_prefix = "TABSPLIT_"
        # Provider keys live in the same .env file
        extra = "ignore"


settings = Settings()
