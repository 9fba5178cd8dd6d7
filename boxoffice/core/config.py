from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Boxoffice API"
    API_PREFIX: str = "/api"
    SECRET_KEY: str = "dev_secret_change_me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "boxoffice"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # CORS: the local Vite dev server is always allowed
    FRONTEND_ORIGIN: str = ""

    # Mail
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    MAIL_FROM: str = ""

    CURRENCY: str = "THB"
    SEAT_HOLD_MINUTES: int = 10

    # Optional features; the matching tables must also exist
    PROMOTIONS_ENABLED: bool = True
    SEAT_HOLDS_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def cors_origins(self) -> List[str]:
        origins = ["http://localhost:5173"]
        if self.FRONTEND_ORIGIN:
            origins.append(self.FRONTEND_ORIGIN)
        return origins

    @property
    def mail_sender(self) -> str:
        return self.MAIL_FROM or self.SMTP_USER

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
