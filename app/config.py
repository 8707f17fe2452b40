from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./chat.db"
    ENV: str = "local"  # Environment setting
    LOG_LEVEL: str = "INFO"

    # Open-AI provider
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 500
    OPENAI_TIMEOUT_SECONDS: float = 30.0

    # Chat behaviour
    CHAT_TEST_MODE: bool = False
    CHAT_SYSTEM_PROMPT: Optional[str] = None
    CHAT_HISTORY_WINDOW: int = 20

    CORS_ORIGINS: List[str] = ["*"]
    AUTO_CREATE_TABLES: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
