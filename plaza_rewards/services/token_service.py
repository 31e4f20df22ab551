from datetime import date
from typing import Optional
import logging
import re

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from plaza_rewards.config import Settings
from plaza_rewards.core.exceptions import (
    NotFoundError,
    ServiceUnavailableError,
    TRANSIENT_DB_ERRORS,
    ValidationError,
)
from plaza_rewards.models.plaza import TokenTransactionType
from plaza_rewards.repositories.reward_account_repository import RewardAccountRepository
from plaza_rewards.repositories.reward_transaction_repository import (
    RewardTransactionRepository,
)
from plaza_rewards.schemas.plaza import (
    AwardTokensRequest,
    RewardAccountResponse,
    RewardAccountSchema,
    TokenAwardResponse,
    TokenInfoResponse,
)
from plaza_rewards.utils.date_utils import day_window_utc, tenant_today

logger = logging.getLogger(__name__)

DISPLAY_NAME_MAX_LENGTH = 50

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_SPACE_RE = re.compile(r"\s+")


def sanitize_display_name(value: str) -> str:
    """태그/제어문자 제거, 공백 정리 후 최대 50자"""
    cleaned = _TAG_RE.sub("", value or "")
    cleaned = _CONTROL_RE.sub("", cleaned)
    cleaned = _SPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:DISPLAY_NAME_MAX_LENGTH].strip()


class TokenService:
    """토큰 계정/잔액/지급 관련 비즈니스 로직을 담당하는 서비스"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.account_repo = RewardAccountRepository(db)
        self.transaction_repo = RewardTransactionRepository(db)

    def provision_account(
        self, tenant_id: str, user_id: str, display_name: str
    ) -> RewardAccountResponse:
        """리워드 계정 생성 (플라자 첫 방문 시). 이미 있으면 기존 계정 반환

        Args:
            tenant_id: 테넌트 ID
            user_id: 사용자 ID
            display_name: 표시 이름

        Returns:
            RewardAccountResponse: 생성되었거나 기존에 있던 계정
        """
        safe_name = sanitize_display_name(display_name)
        if not safe_name:
            raise ValidationError("Display name cannot be empty")

        try:
            existing = self.account_repo.get_by_owner(tenant_id, user_id)
            if existing:
                return RewardAccountResponse.model_validate(existing)

            try:
                account = self.account_repo.create_account(tenant_id, user_id, safe_name)
            except IntegrityError:
                # 동시 생성 요청에 밀린 경우 승자가 만든 계정을 반환
                account = self.account_repo.get_by_owner(tenant_id, user_id)
                if account is None:
                    raise
        except TRANSIENT_DB_ERRORS as e:
            logger.error(f"Failed to provision account for tenant={tenant_id} user={user_id}: {str(e)}")
            raise ServiceUnavailableError() from e

        logger.info(f"Provisioned reward account {account.id} for tenant={tenant_id} user={user_id}")
        return RewardAccountResponse.model_validate(account)

    def get_account(self, tenant_id: str, user_id: str) -> Optional[RewardAccountResponse]:
        try:
            account = self.account_repo.get_by_owner(tenant_id, user_id)
        except TRANSIENT_DB_ERRORS as e:
            raise ServiceUnavailableError() from e
        return RewardAccountResponse.model_validate(account) if account else None

    def get_token_info(
        self, tenant_id: str, user_id: str, today: Optional[date] = None
    ) -> TokenInfoResponse:
        """토큰 잔액, 오늘 획득량/남은 한도, 최근 거래 내역 조회"""
        try:
            account = self._require_account(tenant_id, user_id)
            earned_today = self._earned_today(tenant_id, user_id, today)
            recent = self.transaction_repo.get_recent(
                tenant_id, user_id, limit=self.settings.RECENT_TRANSACTIONS_LIMIT
            )
        except TRANSIENT_DB_ERRORS as e:
            logger.error(f"Failed to get token info for tenant={tenant_id} user={user_id}: {str(e)}")
            raise ServiceUnavailableError() from e

        daily_cap = self.settings.TOKEN_DAILY_CAP
        return TokenInfoResponse(
            balance=account.balance,
            tokens_earned_total=account.total_earned,
            tokens_earned_today=earned_today,
            daily_cap=daily_cap,
            daily_cap_remaining=max(0, daily_cap - earned_today),
            recent_transactions=recent,
        )

    def award_tokens(
        self,
        tenant_id: str,
        user_id: str,
        request: AwardTokensRequest,
        today: Optional[date] = None,
    ) -> TokenAwardResponse:
        """토큰 지급 (게임 완료, 학습 세션 등). 일일 상한을 넘는 부분은 잘림

        Args:
            tenant_id: 테넌트 ID
            user_id: 사용자 ID
            request: 지급 요청
            today: 테넌트 로컬 기준 오늘

        Returns:
            TokenAwardResponse: 실제 지급 결과 (상한 도달 시 amount=0, 기록 없음)
        """
        if request.transaction_type == TokenTransactionType.EARN_DAILY_LOGIN:
            raise ValidationError(
                "Daily login tokens are awarded only through the daily login endpoint"
            )

        try:
            account = self._require_account(tenant_id, user_id)
            earned_today = self._earned_today(tenant_id, user_id, today)
            cap_remaining = max(0, self.settings.TOKEN_DAILY_CAP - earned_today)
            capped_amount = min(request.amount, cap_remaining)

            if capped_amount <= 0:
                logger.info(f"Daily token cap reached for tenant={tenant_id} user={user_id}")
                return TokenAwardResponse(
                    success=False,
                    transaction_id=None,
                    amount=0,
                    balance_after=account.balance,
                    message="Daily token cap reached",
                )

            # 잔액 증가와 원장 기록을 한 트랜잭션으로 커밋
            try:
                new_balance = self.account_repo.increment_balance(account.id, capped_amount)
                if new_balance is None:
                    raise NotFoundError("Reward account not found.")
                entry = self.transaction_repo.append(
                    account_id=account.id,
                    tenant_id=tenant_id,
                    user_id=user_id,
                    amount=capped_amount,
                    balance_after=new_balance,
                    transaction_type=request.transaction_type.value,
                    source_type=request.source_type,
                    source_id=request.source_id,
                    description=request.description,
                    commit=False,
                )
                self.db.commit()
            except (SQLAlchemyError, NotFoundError):
                self.db.rollback()
                raise
        except TRANSIENT_DB_ERRORS as e:
            logger.error(f"Failed to award tokens for tenant={tenant_id} user={user_id}: {str(e)}")
            raise ServiceUnavailableError() from e

        logger.info(
            f"Awarded {capped_amount}/{request.amount} tokens ({request.transaction_type.value}) "
            f"to tenant={tenant_id} user={user_id}"
        )
        return TokenAwardResponse(
            success=True,
            transaction_id=entry.id,
            amount=capped_amount,
            balance_after=new_balance,
            message=(
                "Tokens awarded"
                if capped_amount == request.amount
                else "Tokens awarded (clamped to daily cap)"
            ),
        )

    def _require_account(self, tenant_id: str, user_id: str) -> RewardAccountSchema:
        account = self.account_repo.get_by_owner(tenant_id, user_id)
        if account is None:
            raise NotFoundError(
                "Reward account not found. Create an avatar first.",
                details={"tenant_id": tenant_id, "user_id": user_id},
            )
        return account

    def _earned_today(self, tenant_id: str, user_id: str, today: Optional[date]) -> int:
        timezone_name = self.settings.timezone_for(tenant_id)
        if today is None:
            today = tenant_today(timezone_name)
        start, end = day_window_utc(today, timezone_name)
        return self.transaction_repo.sum_earned_between(tenant_id, user_id, start, end)
