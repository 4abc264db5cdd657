import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from .url_parser import parser

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "REAL ESTATE RENTAL MANAGEMENT SYSTEM"
    API_PREFIX: str = "/v1"
    JWT_SECRET_KEY: str = os.getenv(
        "JWT_SECRET_KEY", "real-estate-management-secret-key"
    )
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_EXPIRE_MINUTES: int = 24 * 60
    RATE_LIMIT_REDIS_URL: str | None = os.getenv("RATE_LIMIT_REDIS_URL")
    RATE_LIMIT_TIMES: int = 100
    RATE_LIMIT_SECONDS: int = 60
    AUTH_RATE_LIMIT_TIMES: int = 10
    ADMIN_RATE_LIMIT_TIMES: int = 50
    RECENT_ITEMS_LIMIT: int = 10
    ACTIVITY_WINDOW_DAYS: int = 7
    ALLOWED_HOSTS_RAW: str = os.getenv("ALLOWED_HOSTS", "")

    @property
    def ALLOWED_HOSTS(self) -> List[str]:
        return parser.parse_url_list(self.ALLOWED_HOSTS_RAW, "ALLOWED_HOSTS")

    class Config:
        env_file = ".env"
        extra = "ignore"
        case_sensitive = False


settings = Settings()
