"""
토큰 원장 리포지토리

원장은 감사 추적(Audit Trail)용 append-only 테이블입니다.
- 레코드는 생성 후 수정/삭제되지 않습니다
- 잔액의 원천은 reward_accounts 이며, 원장 합산으로 잔액을 재구성하지 않습니다
- 오늘 획득량(일일 상한 계산)은 원장의 양수 항목 합으로 구합니다
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from plaza_rewards.models.plaza import RewardTransaction as RewardTransactionModel
from plaza_rewards.schemas.plaza import TokenTransactionEntry
from plaza_rewards.repositories.base import BaseRepository
from plaza_rewards.utils.date_utils import utc_now


class RewardTransactionRepository(
    BaseRepository[RewardTransactionModel, TokenTransactionEntry]
):
    def __init__(self, db: Session):
        super().__init__(RewardTransactionModel, TokenTransactionEntry, db)

    def append(
        self,
        account_id: int,
        tenant_id: str,
        user_id: str,
        amount: int,
        balance_after: int,
        transaction_type: str,
        source_type: Optional[str] = None,
        source_id: Optional[str] = None,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> TokenTransactionEntry:
        """원장 항목 추가"""
        return self.create(
            commit=commit,
            account_id=account_id,
            tenant_id=tenant_id,
            user_id=user_id,
            amount=amount,
            balance_after=balance_after,
            transaction_type=transaction_type,
            source_type=source_type,
            source_id=source_id,
            description=description,
            created_at=created_at or utc_now(),
        )

    def sum_earned_between(
        self, tenant_id: str, user_id: str, start: datetime, end: datetime
    ) -> int:
        """[start, end) 구간에 획득한(양수) 토큰 합계"""
        result = self.db.execute(
            select(func.coalesce(func.sum(self.model_class.amount), 0)).where(
                self.model_class.tenant_id == tenant_id,
                self.model_class.user_id == user_id,
                self.model_class.amount > 0,  # 획득분만
                self.model_class.created_at >= start,
                self.model_class.created_at < end,
            )
        ).scalar()
        return int(result or 0)

    def get_recent(
        self, tenant_id: str, user_id: str, limit: int = 20
    ) -> List[TokenTransactionEntry]:
        """최근 거래 내역 (최신순)"""
        rows = (
            self.db.execute(
                select(self.model_class)
                .where(
                    self.model_class.tenant_id == tenant_id,
                    self.model_class.user_id == user_id,
                )
                .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [self._to_schema(row) for row in rows]
