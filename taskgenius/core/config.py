"""
Configuration settings for TaskGenius.
"""
import os
from typing import List
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load environment variables
load_dotenv()


class Settings(BaseModel):
    """Application settings"""

    # Service information
    service_name: str = "taskgenius"
    service_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api"

    # Database configuration
    database_url: str = "sqlite:///./taskgenius.db"

    # Security
    secret_key: str = "taskgenius-secret-key-change-in-production"
    algorithm: str = "HS256"
    jwt_issuer: str = "taskgenius"
    jwt_audience: str = "taskgenius-clients"
    access_token_expire_minutes: int = 30

    # Tasks
    task_quota: int = 20

    # Gemini configuration
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/models/"
    gemini_model: str = "gemini-1.5-flash:generateContent"
    gemini_api_key: str = ""
    gemini_timeout_seconds: float = 30.0

    # CORS configuration
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "taskgenius"),
            debug=os.getenv("DEBUG", "False").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_prefix=os.getenv("API_PREFIX", "/api"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./taskgenius.db"),
            secret_key=os.getenv(
                "SECRET_KEY",
                "taskgenius-secret-key-change-in-production"
            ),
            algorithm=os.getenv("ALGORITHM", "HS256"),
            jwt_issuer=os.getenv("JWT_ISSUER", "taskgenius"),
            jwt_audience=os.getenv("JWT_AUDIENCE", "taskgenius-clients"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")),
            task_quota=int(os.getenv("TASK_QUOTA", "20")),
            gemini_base_url=os.getenv(
                "GEMINI_BASE_URL",
                "https://generativelanguage.googleapis.com/v1beta/models/"
            ),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash:generateContent"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )


def get_settings() -> Settings:
    """Get a settings instance read from the environment."""
    return Settings.from_env()
