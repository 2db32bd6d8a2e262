from typing import Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "catering"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL, wins over the postgres_* parts (sqlite for local runs)
    database_url_override: Optional[str] = None

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    ENV: str = "production"
    LOG_LEVEL: str = "INFO"

    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    PAYMENT_CURRENCY: str = "IDR"

    # store connection used by the create-payment function for batch mappings
    FUNCTIONS_STORE_URL: Optional[str] = None

    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cors_origins(self):
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
