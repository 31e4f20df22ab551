"""
플라자 토큰 이코노미 데이터 모델

- RewardAccount: 테넌트+사용자 당 1개, 잔액/연속 접속/마지막 보상일 보관
- RewardTransaction: 불변 원장 (감사 추적용, 잔액의 원천은 RewardAccount)
"""

import enum
from datetime import date
from typing import Optional

from sqlalchemy import BigInteger, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from plaza_rewards.models.base import Base, CreatedAtMixin, TimestampMixin


class TokenTransactionType(str, enum.Enum):
    EARN_GAME = "earn_game"
    EARN_HIGH_SCORE = "earn_high_score"
    EARN_DAILY_LOGIN = "earn_daily_login"
    EARN_STUDY_STREAK = "earn_study_streak"
    EARN_QUIZ_PERFORMANCE = "earn_quiz_performance"
    EARN_ACHIEVEMENT = "earn_achievement"
    EARN_STUDY_SESSION = "earn_study_session"
    EARN_EVENT_BONUS = "earn_event_bonus"
    ADMIN_GRANT = "admin_grant"


class RewardAccount(Base, TimestampMixin):
    __tablename__ = "reward_accounts"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)

    # 마지막으로 일일 접속 보상이 커밋된 테넌트 로컬 날짜
    last_award_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # 누적 획득량 (소비해도 줄지 않음)
    total_earned: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class RewardTransaction(Base, CreatedAtMixin):
    __tablename__ = "reward_transactions"
    __table_args__ = (
        Index("ix_reward_transactions_owner_created", "tenant_id", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    account_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("reward_accounts.id"), nullable=False
    )
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # 이 거래 직후의 계정 잔액 스냅샷
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    source_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    source_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
