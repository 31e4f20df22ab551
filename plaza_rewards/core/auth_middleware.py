"""
호출자 식별

인증/세션 갱신과 테넌트 결정은 업스트림 프록시가 담당하고,
결과를 요청 헤더(기본 X-Tenant-Id / X-User-Id)로 주입합니다.
이 서비스는 해당 헤더만 신뢰하여 현재 사용자를 식별합니다.
"""

from dataclasses import dataclass

from fastapi import Request

from plaza_rewards.config import settings
from plaza_rewards.core.exceptions import AuthenticationError

MAX_IDENTIFIER_LENGTH = 64


@dataclass(frozen=True)
class CurrentIdentity:
    tenant_id: str
    user_id: str


def _read_header(request: Request, name: str) -> str:
    value = (request.headers.get(name) or "").strip()
    if not value:
        raise AuthenticationError(
            f"Missing identity header: {name}", details={"header": name}
        )
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise AuthenticationError(
            f"Invalid identity header: {name}", details={"header": name}
        )
    return value


def get_current_identity(request: Request) -> CurrentIdentity:
    """필수 사용자 식별 - 테넌트/사용자 헤더가 모두 있어야 함"""
    return CurrentIdentity(
        tenant_id=_read_header(request, settings.TENANT_HEADER),
        user_id=_read_header(request, settings.USER_HEADER),
    )
