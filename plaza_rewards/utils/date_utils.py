from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
import logging

import pytz

# 로거 설정
logger = logging.getLogger(__name__)


def get_timezone(timezone_name: str):
    """
    pytz 타임존 조회. 알 수 없는 이름이면 UTC로 대체합니다.
    """
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"알 수 없는 타임존: {timezone_name} - UTC로 대체")
        return pytz.utc


def tenant_today(timezone_name: str, now: Optional[datetime] = None) -> date:
    """
    테넌트 타임존 기준 오늘 날짜

    Args:
        timezone_name: 테넌트 타임존 (예: "America/Edmonton")
        now: 기준 시각 (None이면 현재 시각, naive 값은 UTC로 간주)

    Returns:
        date: 테넌트 로컬 날짜
    """
    tz = get_timezone(timezone_name)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def previous_day(day: date) -> date:
    return day - timedelta(days=1)


def day_window_utc(day: date, timezone_name: str) -> Tuple[datetime, datetime]:
    """
    테넌트 로컬 하루 [00:00, 다음날 00:00) 를 UTC 구간으로 변환

    DST 전환일에도 각 경계를 개별적으로 localize 하므로 23/25시간 하루가 그대로 반영됩니다.
    """
    tz = get_timezone(timezone_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.astimezone(pytz.utc), end.astimezone(pytz.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
