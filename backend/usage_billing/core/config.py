from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Usage Billing Processor"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/usage_billing.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Payment processor
    stripe_api_key: str = ""
    STRIPE_CURRENCY: str = "usd"

    # Email provider (REST), with SMTP as a secondary transport
    EMAIL_PROVIDER_URL: str = "https://api.resend.com/emails"
    EMAIL_PROVIDER_API_KEY: str = ""
    EMAIL_FROM: str = "billing@example.com"
    EMAIL_TIMEOUT_SECONDS: float = 10.0
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_NAME: str = "Billing"
    SMTP_USE_TLS: bool = True
    BILLING_ALERT_FALLBACK_EMAIL: str = "admin@example.com"

    # Usage processing
    USAGE_BATCH_SIZE: int = 100
    USAGE_CLAIM_LEASE_SECONDS: int = 300

    # Quota alerting
    QUOTA_WARNING_PERCENTAGE: int = 80
    QUOTA_EXCEEDED_PERCENTAGE: int = 100
    ALERT_DEDUP_WINDOW_HOURS: int = 24
    ALERT_RETENTION_DAYS: int = 30

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.stripe_api_key)


settings = Settings()
