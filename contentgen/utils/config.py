from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///app.db"

    JWT_SECRET: str = Field("dev-secret-key", description="JWT secret key")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    FRONTEND_URL: str = "http://localhost:3000"
    PUBLIC_BASE_URL: str = "http://localhost:3001"

    # Quota / subscription policy
    FREE_DAILY_LIMIT: int = 5
    PREMIUM_PERIOD_DAYS: int = 30
    PREMIUM_PRICE_CENTS: int = 1000
    PREMIUM_CURRENCY: str = "usd"

    # Generation providers
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_IMAGE_MODEL: str = "dall-e-3"
    OPENAI_IMAGE_SIZE: str = "1024x1024"

    RUNWAY_API_KEY: str | None = None
    RUNWAY_BASE_URL: str = "https://api.runwayml.com/v1"
    RUNWAY_MODEL: str = "gen4-turbo"
    VIDEO_DURATION_SECONDS: int = 5
    VIDEO_ASPECT_RATIO: str = "16:9"
    VIDEO_POLL_INTERVAL_SECONDS: float = 10.0
    VIDEO_POLL_MAX_ATTEMPTS: int = 30

    PROVIDER_TIMEOUT_SECONDS: float = 120.0

    # Artifact storage (local disk unless S3 is fully configured)
    STORAGE_DIR: str = "storage"
    MOCK_S3: bool = False
    AWS_S3_BUCKET: str | None = None
    AWS_S3_ENDPOINT: str | None = None
    AWS_DEFAULT_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None

    # Payments
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_PUBLISHABLE_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_AUTH: str = "10/15minutes"
    RATE_LIMIT_GENERATE: str = "10/minute"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


settings = Settings()
