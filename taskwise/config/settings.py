"""
Application settings and configuration
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings:
    """Application settings loaded from environment variables"""

    # OpenAI
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: Optional[str] = os.getenv("OPENAI_MODEL", None)
    OPENAI_FALLBACK_MODEL: Optional[str] = os.getenv("OPENAI_FALLBACK_MODEL", None)

    # Authentication
    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

    # Document store
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "taskwise")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")
    WEB_PORT: int = int(os.getenv("WEB_PORT", "8000"))
    USER_TIMEZONE_OFFSET: float = float(os.getenv("USER_TIMEZONE_OFFSET", "0"))

    @classmethod
    def validate(cls) -> bool:
        """Validate that all required settings are present"""
        required = {
            "OPENAI_API_KEY": cls.OPENAI_API_KEY,
            "JWT_SECRET": cls.JWT_SECRET,
        }
        if cls.STORE_BACKEND == "mongo":
            required["DATABASE_URL"] = cls.DATABASE_URL
            required["DATABASE_NAME"] = cls.DATABASE_NAME

        missing = [name for name, value in required.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if cls.STORE_BACKEND not in ("memory", "mongo"):
            raise ValueError(f"Unknown STORE_BACKEND: {cls.STORE_BACKEND}")

        return True


# Global settings instance
settings = Settings()
