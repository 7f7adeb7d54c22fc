from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator
import json


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./havenstay.db"
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # Session token
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "havenstay_session"
    SESSION_EXPIRE_MINUTES: int = 120
    SESSION_COOKIE_SECURE: bool = False

    # Rate limits (slowapi syntax)
    SIGNUP_RATE_LIMIT: str = "10/hour"
    LOGIN_RATE_LIMIT: str = "5/minute"

    # HTTP
    API_PREFIX: str = "/api"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:5174",
        "http://localhost:5175",
        "http://localhost:5176",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Accept a JSON list or a comma separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    raise ValueError(f"Invalid JSON in CORS_ORIGINS: {v}")
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Pexels
    PEXELS_API_KEY: str = ""
    PEXELS_API_URL: str = "https://api.pexels.com/v1/search"

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
