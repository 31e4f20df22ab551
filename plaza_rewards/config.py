from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, Optional
from urllib.parse import quote_plus

from plaza_rewards.services.reward_policy import RewardPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="plaza_rewards/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Plaza Rewards API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_SCHEMA: str = "plaza"

    # 지정 시 POSTGRES_* 조합 대신 그대로 사용 (로컬/테스트용 sqlite 등)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Identity headers (업스트림 테넌트/인증 프록시가 주입)
    TENANT_HEADER: str = "X-Tenant-Id"
    USER_HEADER: str = "X-User-Id"

    # Timezone
    TIMEZONE: str = "UTC"
    TENANT_TIMEZONES: Dict[str, str] = {}  # tenant_id -> tz name

    # Token Economy
    TOKEN_DAILY_CAP: int = 200  # 하루 최대 획득 토큰 (모든 출처 합산)
    DAILY_LOGIN_TOKENS: int = 10  # 일일 접속 기본 보상
    STREAK_BONUS_SCHEDULE: Dict[int, int] = {7: 25, 14: 50, 30: 100}
    DAILY_LOGIN_REREAD_ON_CONFLICT: bool = True
    RECENT_TRANSACTIONS_LIMIT: int = 20

    def timezone_for(self, tenant_id: str) -> str:
        return self.TENANT_TIMEZONES.get(tenant_id, self.TIMEZONE)

    @property
    def reward_policy(self) -> RewardPolicy:
        return RewardPolicy(
            daily_base_amount=self.DAILY_LOGIN_TOKENS,
            streak_bonus_schedule=dict(self.STREAK_BONUS_SCHEDULE),
            daily_cap=self.TOKEN_DAILY_CAP,
        )


settings = Settings()
