import os

# 테스트는 PostgreSQL 없이 동작해야 함 (모듈 레벨 engine 생성 전에 설정)
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from plaza_rewards.config import Settings
from plaza_rewards.models.base import Base
from plaza_rewards.models.plaza import RewardAccount, RewardTransaction

TENANT_ID = "school-1"
USER_ID = "user-1"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    """기본 보상 5, 7일차 보너스 20, 일일 상한 100"""
    return Settings(
        _env_file=None,
        TIMEZONE="UTC",
        TOKEN_DAILY_CAP=100,
        DAILY_LOGIN_TOKENS=5,
        STREAK_BONUS_SCHEDULE={7: 20},
        DAILY_LOGIN_REREAD_ON_CONFLICT=True,
        RECENT_TRANSACTIONS_LIMIT=20,
    )


@pytest.fixture
def make_account(db):
    def _make(
        tenant_id: str = TENANT_ID,
        user_id: str = USER_ID,
        last_award_date: date = None,
        streak_count: int = 0,
        balance: int = 0,
        total_earned: int = 0,
    ) -> RewardAccount:
        account = RewardAccount(
            tenant_id=tenant_id,
            user_id=user_id,
            display_name="Test Student",
            last_award_date=last_award_date,
            streak_count=streak_count,
            balance=balance,
            total_earned=total_earned,
        )
        db.add(account)
        db.commit()
        return account

    return _make


@pytest.fixture
def add_transaction(db):
    def _add(
        account: RewardAccount,
        amount: int,
        created_at: datetime,
        transaction_type: str = "earn_game",
        balance_after: int = 0,
    ) -> RewardTransaction:
        entry = RewardTransaction(
            account_id=account.id,
            tenant_id=account.tenant_id,
            user_id=account.user_id,
            amount=amount,
            balance_after=balance_after,
            transaction_type=transaction_type,
            source_type="test",
            created_at=created_at,
        )
        db.add(entry)
        db.commit()
        return entry

    return _add
