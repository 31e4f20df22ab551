"""
리워드 계정 리포지토리

일일 접속 보상의 핵심은 try_advance_daily_login 의 조건부 UPDATE 입니다.
애플리케이션 레벨 락 없이, DB가 행 단위로 WHERE 조건을 원자적으로 평가하여
같은 날 동시에 들어온 요청 중 정확히 하나만 상태를 전진시킵니다.
"""

from datetime import date
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from plaza_rewards.models.plaza import RewardAccount as RewardAccountModel
from plaza_rewards.schemas.plaza import RewardAccountSchema
from plaza_rewards.repositories.base import BaseRepository


class RewardAccountRepository(BaseRepository[RewardAccountModel, RewardAccountSchema]):
    def __init__(self, db: Session):
        super().__init__(RewardAccountModel, RewardAccountSchema, db)

    def get_by_owner(self, tenant_id: str, user_id: str) -> Optional[RewardAccountSchema]:
        """테넌트+사용자로 계정 조회 (항상 DB의 최신 값으로 갱신)"""
        stmt = (
            select(self.model_class)
            .where(
                self.model_class.tenant_id == tenant_id,
                self.model_class.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        return self._to_schema(self.db.execute(stmt).scalars().first())

    def create_account(
        self, tenant_id: str, user_id: str, display_name: str
    ) -> RewardAccountSchema:
        """기본값(0)으로 계정 생성. 유니크 제약 위반 시 IntegrityError 전파"""
        return self.create(
            tenant_id=tenant_id,
            user_id=user_id,
            display_name=display_name,
            last_award_date=None,
            streak_count=0,
            balance=0,
            total_earned=0,
        )

    def try_advance_daily_login(
        self, account_id: int, today: date, new_streak: int, amount: int
    ) -> Optional[int]:
        """
        조건부 단일 UPDATE (compare-and-set)

        last_award_date 가 아직 today 가 아닐 때만 갱신합니다.
        잔액은 읽어온 스냅샷이 아니라 현재 행 값에 더하므로, 그 사이의 다른 변동을 덮어쓰지 않습니다.

        Returns:
            Optional[int]: 이 호출이 상태를 전진시켰으면 커밋된 잔액, 다른 요청이 먼저 처리했으면 None
        """
        stmt = (
            update(self.model_class)
            .where(self.model_class.id == account_id)
            .where(
                or_(
                    self.model_class.last_award_date.is_(None),
                    self.model_class.last_award_date != today,
                )
            )
            .values(
                last_award_date=today,
                streak_count=new_streak,
                balance=self.model_class.balance + amount,
                total_earned=self.model_class.total_earned + amount,
            )
            .returning(self.model_class.balance)
            .execution_options(synchronize_session=False)
        )
        try:
            committed_balance = self.db.execute(stmt).scalar_one_or_none()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return committed_balance

    def increment_balance(self, account_id: int, amount: int) -> Optional[int]:
        """
        잔액/누적 획득량 증가 후 새 잔액 반환 (커밋하지 않음)

        같은 트랜잭션 안에서 원장 기록까지 끝낸 뒤 호출자가 커밋합니다.
        UPDATE 이후 행 잠금이 유지되므로 이어지는 SELECT 값은 이 트랜잭션의 결과입니다.
        """
        stmt = (
            update(self.model_class)
            .where(self.model_class.id == account_id)
            .values(
                balance=self.model_class.balance + amount,
                total_earned=self.model_class.total_earned + amount,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.db.execute(
            select(self.model_class.balance).where(self.model_class.id == account_id)
        ).scalar_one()
