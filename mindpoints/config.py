from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="mindpoints/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Mind Points API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./mindpoints.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    POSTGRES_SCHEMA: Optional[str] = None

    # Security
    SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    # 결제/추천 플로우 등 내부 서비스 호출용 공유 토큰
    INTERNAL_API_TOKEN: str = ""

    # Coupons
    COUPON_CODE_PREFIX: str = "MP"

    # Points history paging
    POINTS_HISTORY_DEFAULT_LIMIT: int = 50
    POINTS_HISTORY_MAX_LIMIT: int = 100

    # Retry envelope (checkout -> ledger)
    RETRY_MAX_TRIES: int = 4  # 최초 시도 + 재시도 3회
    RETRY_INITIAL_DELAY_SECONDS: float = 0.5
    RETRY_MAX_DELAY_SECONDS: float = 5.0

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
