from datetime import date
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plaza_rewards.config import Settings
from plaza_rewards.core.exceptions import (
    NotFoundError,
    ServiceUnavailableError,
    TRANSIENT_DB_ERRORS,
)
from plaza_rewards.models.plaza import TokenTransactionType
from plaza_rewards.repositories.reward_account_repository import RewardAccountRepository
from plaza_rewards.repositories.reward_transaction_repository import (
    RewardTransactionRepository,
)
from plaza_rewards.schemas.plaza import DailyLoginResult, RewardAccountSchema
from plaza_rewards.services.reward_policy import (
    RewardPolicy,
    compute_next_streak,
    nominal_streak_bonus,
    plan_daily_award,
)
from plaza_rewards.utils.date_utils import day_window_utc, tenant_today

logger = logging.getLogger(__name__)

DAILY_LOGIN_SOURCE = "daily_login"


class DailyLoginService:
    """
    일일 접속 보상 서비스

    같은 사용자의 요청이 같은 날 여러 번(더블 클릭, 여러 탭, 재시도) 들어와도
    보상은 하루 한 번만 커밋됩니다. 중복 방지는 애플리케이션 락이 아니라
    RewardAccountRepository.try_advance_daily_login 의 조건부 UPDATE 가 보장합니다.
    """

    def __init__(
        self, db: Session, settings: Settings, policy: Optional[RewardPolicy] = None
    ):
        self.db = db
        self.settings = settings
        self.policy = policy or settings.reward_policy
        self.account_repo = RewardAccountRepository(db)
        self.transaction_repo = RewardTransactionRepository(db)

    def record_daily_login(
        self, tenant_id: str, user_id: str, today: Optional[date] = None
    ) -> DailyLoginResult:
        """일일 접속 기록 (새 날짜면 토큰 지급)

        Args:
            tenant_id: 테넌트(학교) ID
            user_id: 사용자 ID
            today: 테넌트 로컬 기준 오늘 (기본값: 테넌트 타임존의 현재 날짜)

        Returns:
            DailyLoginResult: 지급 결과

        Raises:
            NotFoundError: 리워드 계정이 없음 (계정 생성은 이 메서드의 책임이 아님)
            ServiceUnavailableError: 조회/조건부 갱신 중 DB 장애 (재시도 안전)
        """
        timezone_name = self.settings.timezone_for(tenant_id)
        if today is None:
            today = tenant_today(timezone_name)

        account = self._load_account(tenant_id, user_id)

        # 오늘 이미 지급됨 - 같은 날 반복 호출은 no-op
        if account.last_award_date == today:
            return DailyLoginResult(
                is_new_day=False,
                tokens_awarded=0,
                streak=account.streak_count,
                streak_bonus=0,
                new_balance=account.balance,
            )

        new_streak = compute_next_streak(
            account.last_award_date, account.streak_count, today
        )
        nominal_bonus = nominal_streak_bonus(
            new_streak, self.policy.streak_bonus_schedule
        )
        earned_today = self._earned_today(tenant_id, user_id, today, timezone_name)
        plan = plan_daily_award(
            self.policy.daily_base_amount,
            nominal_bonus,
            self.policy.daily_cap,
            earned_today,
        )
        total = plan.total_awarded

        try:
            committed_balance = self.account_repo.try_advance_daily_login(
                account.id, today, new_streak, total
            )
        except TRANSIENT_DB_ERRORS as e:
            logger.error(
                f"Daily login update failed for tenant={tenant_id} user={user_id}: {str(e)}"
            )
            raise ServiceUnavailableError() from e

        if committed_balance is None:
            logger.warning(
                f"Daily login for tenant={tenant_id} user={user_id} on {today} "
                "already processed by a concurrent request"
            )
            return self._concurrent_result(account)

        # 원장에는 그 사이 다른 지급까지 반영된 실제 커밋 잔액을 기록
        new_balance = account.balance + total
        if total > 0:
            self._record_transaction(
                account, total, committed_balance, new_streak, plan.bonus_awarded, nominal_bonus
            )

        logger.info(
            f"Daily login awarded {total} tokens to tenant={tenant_id} user={user_id} "
            f"(streak={new_streak}, bonus={plan.bonus_awarded}, earned_today={earned_today})"
        )
        return DailyLoginResult(
            is_new_day=True,
            tokens_awarded=total,
            streak=new_streak,
            streak_bonus=plan.bonus_awarded,
            new_balance=new_balance,
        )

    def _load_account(self, tenant_id: str, user_id: str) -> RewardAccountSchema:
        try:
            account = self.account_repo.get_by_owner(tenant_id, user_id)
        except TRANSIENT_DB_ERRORS as e:
            logger.error(
                f"Failed to load reward account for tenant={tenant_id} user={user_id}: {str(e)}"
            )
            raise ServiceUnavailableError() from e

        if account is None:
            raise NotFoundError(
                "Reward account not found. Create an avatar first.",
                details={"tenant_id": tenant_id, "user_id": user_id},
            )
        return account

    def _earned_today(
        self, tenant_id: str, user_id: str, today: date, timezone_name: str
    ) -> int:
        start, end = day_window_utc(today, timezone_name)
        try:
            return self.transaction_repo.sum_earned_between(tenant_id, user_id, start, end)
        except TRANSIENT_DB_ERRORS as e:
            logger.error(
                f"Failed to sum today's earnings for tenant={tenant_id} user={user_id}: {str(e)}"
            )
            raise ServiceUnavailableError() from e

    def _concurrent_result(self, snapshot: RewardAccountSchema) -> DailyLoginResult:
        """경쟁에서 진 요청의 응답. 설정에 따라 갱신된 계정을 다시 읽어 반영"""
        account = snapshot
        if self.settings.DAILY_LOGIN_REREAD_ON_CONFLICT:
            try:
                account = (
                    self.account_repo.get_by_owner(snapshot.tenant_id, snapshot.user_id)
                    or snapshot
                )
            except TRANSIENT_DB_ERRORS as e:
                logger.warning(
                    f"Re-read after concurrent daily login failed, using snapshot: {str(e)}"
                )

        return DailyLoginResult(
            is_new_day=False,
            tokens_awarded=0,
            streak=account.streak_count,
            streak_bonus=0,
            new_balance=account.balance,
        )

    def _record_transaction(
        self,
        account: RewardAccountSchema,
        amount: int,
        balance_after: int,
        streak: int,
        bonus_awarded: int,
        nominal_bonus: int,
    ) -> None:
        # 원장은 감사 추적용. 계정 상태는 이미 커밋되었으므로 실패해도 호출자에게 알리지 않음
        description = f"Daily login (streak: {streak})"
        if nominal_bonus > 0:
            description += f" + streak bonus: {bonus_awarded}"

        try:
            self.transaction_repo.append(
                account_id=account.id,
                tenant_id=account.tenant_id,
                user_id=account.user_id,
                amount=amount,
                balance_after=balance_after,
                transaction_type=TokenTransactionType.EARN_DAILY_LOGIN.value,
                source_type=DAILY_LOGIN_SOURCE,
                description=description,
            )
        except SQLAlchemyError:
            logger.exception(
                f"Failed to record daily login transaction for account {account.id} "
                f"(amount={amount}, balance_after={balance_after})"
            )
