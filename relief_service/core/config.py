# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "relief-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8000"))

    # Storage: SQL when DATABASE_URL is set, JSON file otherwise
    DATA_FILE: str = os.getenv("DATA_FILE", "data/db.json")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    STORE_MAX_RETRIES: int = int(os.getenv("STORE_MAX_RETRIES", "5"))

    # Sessions
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_SECONDS: int = int(os.getenv("JWT_EXPIRES_SECONDS", str(24 * 60 * 60)))
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() == "true"

    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Administrator")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    # Upstream services
    PREDICTION_SERVICE_URL: str = os.getenv("PREDICTION_SERVICE_URL", "http://localhost:5000")
    CHAT_API_URL: str = os.getenv("CHAT_API_URL", "https://api.x.ai/v1/chat/completions")
    CHAT_API_KEY: str = os.getenv("CHAT_API_KEY", "")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "grok-3")
    CHAT_SYSTEM_PROMPT: str = os.getenv(
        "CHAT_SYSTEM_PROMPT",
        "You are a mental health support buddy for post-disaster victims. "
        "Respond with empathy, validate their feelings, and suggest practical "
        "coping strategies like breathing exercises or grounding techniques. "
        "Avoid generic responses and focus on their specific disaster-related emotions.",
    )
    UPSTREAM_TIMEOUT: float = float(os.getenv("UPSTREAM_TIMEOUT", "10.0"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
