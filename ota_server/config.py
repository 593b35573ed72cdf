from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional

DEFAULT_SCHEMA_VERSION = "0.21.0"


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = Field(default=10)
    SCHEMA_VERSION: str = Field(default=DEFAULT_SCHEMA_VERSION)

    # S3 / R2 bundle storage
    AWS_REGION: str
    AWS_ACCESS_KEY_ID: str
    AWS_SECRET_ACCESS_KEY: str
    S3_BUCKET_NAME: str
    R2_ENDPOINT: Optional[str] = None

    # Shared secret for the admin API
    API_KEY: Optional[str] = None

    # Server
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    BASE_PATH: str = Field(default="/hot-updater")

    # App
    ENV: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: str = Field(default="*")

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("BASE_PATH")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return value if value != "/" else ""

    @property
    def sqlalchemy_url(self) -> str:
        # mysql:// URLs come straight from the deploy docs; pick the PyMySQL driver
        if self.DATABASE_URL.startswith("mysql://"):
            return "mysql+pymysql://" + self.DATABASE_URL[len("mysql://"):]
        return self.DATABASE_URL

    @property
    def admin_prefix(self) -> str:
        return f"{self.BASE_PATH}/api"


settings = Settings()  # loads from environment and .env
