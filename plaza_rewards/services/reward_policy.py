"""
일일 접속 보상 계산 규칙

DB 접근 없이 순수 함수로만 구성되어 있습니다.
- 연속 접속(streak) 계산
- 마일스톤 보너스 조회
- 일일 상한(cap) 적용
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from plaza_rewards.utils.date_utils import previous_day


@dataclass(frozen=True)
class RewardPolicy:
    """프로세스 전역 보상 설정 (시작 시 1회 로드, 이후 불변)"""

    daily_base_amount: int
    streak_bonus_schedule: Mapping[int, int] = field(default_factory=dict)
    daily_cap: int = 0


@dataclass(frozen=True)
class DailyAwardPlan:
    cap_remaining: int
    base_awarded: int
    bonus_awarded: int

    @property
    def total_awarded(self) -> int:
        return self.base_awarded + self.bonus_awarded


def compute_next_streak(
    last_award_date: Optional[date], streak_count: int, today: date
) -> int:
    """어제 보상을 받았으면 streak + 1, 하루라도 비었거나 첫 보상이면 1"""
    if last_award_date is not None and last_award_date == previous_day(today):
        return streak_count + 1
    return 1


def nominal_streak_bonus(streak: int, schedule: Mapping[int, int]) -> int:
    """정확히 마일스톤 일차(7, 14, 30...)에만 보너스 지급"""
    return max(0, schedule.get(streak, 0))


def plan_daily_award(
    base_amount: int, nominal_bonus: int, daily_cap: int, earned_today: int
) -> DailyAwardPlan:
    """
    일일 상한을 적용한 지급액 계산

    기본 보상이 먼저 보호되고, 남은 한도 안에서만 보너스가 잘립니다.
    결과는 항상 0 이상이며 cap_remaining 을 넘지 않습니다.
    """
    cap_remaining = max(0, daily_cap - max(0, earned_today))
    base_awarded = min(max(0, base_amount), cap_remaining)
    bonus_awarded = min(max(0, nominal_bonus), max(0, cap_remaining - base_awarded))
    return DailyAwardPlan(
        cap_remaining=cap_remaining,
        base_awarded=base_awarded,
        bonus_awarded=bonus_awarded,
    )
