"""Application Configuration

pydantic-settings 기반 환경 설정
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === App ===
    APP_NAME: str = "Roadmap Planner"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # === Server ===
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # === Grid ===
    WEEK_COUNT: int = 16
    PLAN_START_WEEK: int = 0  # 0-based scan origin
    DEFAULT_WEEK0: str = "2025-06-02"  # 스프린트가 없을 때 주차 달력 기준일
    AUTO_PLAN_TOLERANCE: float = 0.001

    # === Persistence ===
    AUTOSAVE_ENABLED: bool = True
    AUTOSAVE_DELAY_MS: int = 2000
    ROADMAP_API_URL: str = "http://localhost:8080"
    HTTP_TIMEOUT_SEC: float = 10.0
    USER_ID: str = "00000000-0000-0000-0000-000000000000"

    # === Confirmation ===
    CONFIRMATION_TIMEOUT_SEC: int = 300  # 5 minutes

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json, text

    # === CORS ===
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton
settings = Settings()
