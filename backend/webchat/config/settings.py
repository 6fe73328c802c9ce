"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


class Config:
    TESTING = _env_flag("TESTING")
    DEBUG = _env_flag("DEBUG")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH: str | None = os.getenv("LOG_PATH") or None
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(levelname)s - %(name)s - [%(correlation_id)s] - %(message)s",
    )

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

    # Database (any SQLAlchemy async URL, e.g. postgresql+asyncpg://...)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./webchat.db")
    DATABASE_ECHO: bool = _env_flag("DATABASE_ECHO")

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    # conversation:{id} -> hydrated conversation
    CONVERSATION_CACHE_TTL: int = int(os.getenv("CONVERSATION_CACHE_TTL", "900"))
    # userConversations:{userId} -> ordered list of hydrated conversations
    USER_CONVERSATIONS_CACHE_TTL: int = int(
        os.getenv("USER_CONVERSATIONS_CACHE_TTL", "300")
    )

    # Message history paging
    MESSAGE_PAGE_SIZE: int = int(os.getenv("MESSAGE_PAGE_SIZE", "100"))
    MESSAGE_PAGE_MAX: int = int(os.getenv("MESSAGE_PAGE_MAX", "500"))
    MESSAGE_MAX_LENGTH: int = int(os.getenv("MESSAGE_MAX_LENGTH", "4000"))


class DevelopmentConfig(Config):
    """Development configuration"""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DATABASE_URL = "sqlite+aiosqlite://"
    REDIS_URL = "redis://localhost:6379/15"


class ProductionConfig(Config):
    """Production configuration"""

    pass


# Configuration dictionary
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env=None):
    """Get configuration based on environment"""
    if env is None:
        env = os.getenv("WEBCHAT_ENV", "development")
    return config.get(env, config["default"])
