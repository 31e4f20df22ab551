"""
플라자 토큰 API 라우터

- POST /plaza/daily-login: 일일 접속 기록 (새 날짜면 토큰 지급)
- POST /plaza/account: 리워드 계정 생성 (플라자 첫 방문)
- GET  /plaza/account: 내 리워드 계정 조회
- GET  /plaza/tokens: 토큰 잔액 및 최근 거래 내역
- POST /plaza/tokens/award: 게임/학습 등 활동 보상 지급 (일일 상한 적용)

인증:
- 테넌트/사용자 식별은 업스트림 프록시가 주입한 헤더를 사용
"""

from fastapi import APIRouter, Depends, status

from plaza_rewards.core.auth_middleware import CurrentIdentity, get_current_identity
from plaza_rewards.core.exceptions import NotFoundError
from plaza_rewards.deps import get_daily_login_service, get_token_service
from plaza_rewards.schemas.plaza import (
    AwardTokensRequest,
    CreateAccountRequest,
    DailyLoginResult,
    RewardAccountResponse,
    TokenAwardResponse,
    TokenInfoResponse,
)
from plaza_rewards.services.daily_login_service import DailyLoginService
from plaza_rewards.services.token_service import TokenService

router = APIRouter(prefix="/plaza", tags=["plaza"])


@router.post("/daily-login", response_model=DailyLoginResult)
def record_daily_login(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: DailyLoginService = Depends(get_daily_login_service),
) -> DailyLoginResult:
    """
    일일 접속 기록 - 같은 날 몇 번을 호출해도 보상은 한 번만 지급

    HTTP Status:
        200: 처리 완료 (is_new_day=false 이면 오늘 이미 지급됨)
        401: 식별 헤더 누락
        404: 리워드 계정 없음 (먼저 POST /plaza/account)
        503: 일시적 DB 장애 (같은 요청을 재시도해도 안전)
    """
    return service.record_daily_login(identity.tenant_id, identity.user_id)


@router.post(
    "/account",
    response_model=RewardAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_account(
    request: CreateAccountRequest,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: TokenService = Depends(get_token_service),
) -> RewardAccountResponse:
    """리워드 계정 생성 - 이미 있으면 기존 계정 반환"""
    return service.provision_account(
        identity.tenant_id, identity.user_id, request.display_name
    )


@router.get("/account", response_model=RewardAccountResponse)
def get_my_account(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: TokenService = Depends(get_token_service),
) -> RewardAccountResponse:
    account = service.get_account(identity.tenant_id, identity.user_id)
    if account is None:
        raise NotFoundError("Reward account not found. Create an avatar first.")
    return account


@router.get("/tokens", response_model=TokenInfoResponse)
def get_token_info(
    identity: CurrentIdentity = Depends(get_current_identity),
    service: TokenService = Depends(get_token_service),
) -> TokenInfoResponse:
    """토큰 잔액, 오늘 획득량/남은 한도, 최근 20건 거래 내역"""
    return service.get_token_info(identity.tenant_id, identity.user_id)


@router.post("/tokens/award", response_model=TokenAwardResponse)
def award_tokens(
    request: AwardTokensRequest,
    identity: CurrentIdentity = Depends(get_current_identity),
    service: TokenService = Depends(get_token_service),
) -> TokenAwardResponse:
    """활동 보상 지급 - 일일 상한을 넘는 부분은 잘리고, 상한 도달 시 amount=0"""
    return service.award_tokens(identity.tenant_id, identity.user_id, request)
