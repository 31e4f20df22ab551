from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from plaza_rewards.models.plaza import TokenTransactionType


class DailyLoginResult(BaseModel):
    """일일 접속 보상 결과"""

    is_new_day: bool = Field(..., description="이번 호출이 새 날짜의 첫 보상인지 여부")
    tokens_awarded: int = Field(..., ge=0, description="이번 호출로 지급된 토큰")
    streak: int = Field(..., ge=0, description="연속 접속 일수")
    streak_bonus: int = Field(..., ge=0, description="실제 지급된 연속 접속 보너스")
    new_balance: int = Field(..., description="지급 후 잔액")


class RewardAccountSchema(BaseModel):
    """리워드 계정 (리포지토리 반환용)"""

    id: int
    tenant_id: str
    user_id: str
    display_name: str
    last_award_date: Optional[date] = None
    streak_count: int = 0
    balance: int = 0
    total_earned: int = 0

    class Config:
        from_attributes = True


class RewardAccountResponse(BaseModel):
    """리워드 계정 응답"""

    display_name: str = Field(..., description="표시 이름")
    last_award_date: Optional[date] = Field(None, description="마지막 일일 보상 날짜")
    streak_count: int = Field(..., description="연속 접속 일수")
    balance: int = Field(..., description="현재 토큰 잔액")
    total_earned: int = Field(..., description="누적 획득 토큰")

    class Config:
        from_attributes = True


class CreateAccountRequest(BaseModel):
    """리워드 계정 생성 요청 (플라자 첫 방문)"""

    display_name: str = Field(..., min_length=1, max_length=50, description="표시 이름")


class TokenTransactionEntry(BaseModel):
    """토큰 원장 항목"""

    id: int = Field(..., description="원장 항목 ID")
    amount: int = Field(..., description="토큰 변화량")
    balance_after: int = Field(..., description="거래 후 잔액")
    transaction_type: str = Field(..., description="거래 유형")
    source_type: Optional[str] = Field(None, description="출처 유형")
    source_id: Optional[str] = Field(None, description="출처 ID")
    description: Optional[str] = Field(None, description="설명")
    created_at: datetime = Field(..., description="생성 시간")

    class Config:
        from_attributes = True


class TokenInfoResponse(BaseModel):
    """토큰 잔액 및 최근 거래 내역"""

    balance: int = Field(..., description="현재 잔액")
    tokens_earned_total: int = Field(..., description="누적 획득 토큰")
    tokens_earned_today: int = Field(..., description="오늘 획득 토큰 (모든 출처)")
    daily_cap: int = Field(..., description="일일 획득 상한")
    daily_cap_remaining: int = Field(..., description="오늘 남은 획득 한도")
    recent_transactions: List[TokenTransactionEntry] = Field(
        default_factory=list, description="최근 거래 내역 (최신순)"
    )


class AwardTokensRequest(BaseModel):
    """토큰 지급 요청 (게임, 학습 세션 등)"""

    amount: int = Field(..., gt=0, description="요청 지급량")
    transaction_type: TokenTransactionType = Field(..., description="거래 유형")
    source_type: str = Field(..., min_length=1, max_length=100, description="출처 유형")
    source_id: Optional[str] = Field(None, max_length=100, description="출처 ID")
    description: Optional[str] = Field(None, max_length=255, description="설명")


class TokenAwardResponse(BaseModel):
    """토큰 지급 결과"""

    success: bool = Field(..., description="지급 여부")
    transaction_id: Optional[int] = Field(None, description="원장 항목 ID")
    amount: int = Field(..., description="실제 지급량 (상한 적용 후)")
    balance_after: int = Field(..., description="지급 후 잔액")
    message: str = Field(..., description="응답 메시지")
