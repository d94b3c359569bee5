from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./duet.db"

    # JWT Authentication
    # No usable default: rotating this value invalidates every outstanding token
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "Duet"
    JWT_AUDIENCE: str = "https://api.helloduet.com"
    JWT_ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    # Password hashing cost (2^rounds iterations)
    BCRYPT_ROUNDS: int = 12

    # Deadline for token verification + user lookup on gated requests
    AUTH_TIMEOUT_MS: int = 500

    # Debug mode
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Application
    APP_NAME: str = "Duet"
    VERSION: str = "1.0.0"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
