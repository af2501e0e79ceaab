from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field("sqlite:///muirgen.db", alias="DATABASE_URL")
    # No default: a missing signing secret must stop the process at startup.
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    token_expire_days: int = Field(30, alias="TOKEN_EXPIRE_DAYS")
    bcrypt_rounds: int = Field(12, alias="BCRYPT_ROUNDS")
    api_title: str = Field("Muirgen Vessel API", alias="API_TITLE")
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(5000, alias="API_PORT")
    cors_origins: List[str] = Field(["*"], alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("jwt_secret")
    @classmethod
    def _secret_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return value


settings = Settings()
