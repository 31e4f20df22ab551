from datetime import date, datetime, timedelta, timezone

from plaza_rewards.utils.date_utils import day_window_utc, previous_day, tenant_today


class TestTenantToday:
    def test_uses_tenant_timezone(self):
        now = datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc)

        assert tenant_today("UTC", now) == date(2025, 3, 10)
        assert tenant_today("America/Edmonton", now) == date(2025, 3, 9)
        assert tenant_today("Asia/Seoul", now) == date(2025, 3, 10)

    def test_naive_now_is_treated_as_utc(self):
        assert tenant_today("Asia/Seoul", datetime(2025, 3, 10, 20, 0)) == date(2025, 3, 11)

    def test_unknown_timezone_falls_back_to_utc(self):
        now = datetime(2025, 3, 10, 23, 30, tzinfo=timezone.utc)
        assert tenant_today("Mars/Olympus_Mons", now) == date(2025, 3, 10)


class TestDayWindow:
    def test_previous_day_crosses_month(self):
        assert previous_day(date(2025, 3, 1)) == date(2025, 2, 28)

    def test_window_is_shifted_to_utc(self):
        start, end = day_window_utc(date(2025, 3, 10), "Asia/Seoul")

        assert start == datetime(2025, 3, 9, 15, 0, tzinfo=timezone.utc)
        assert end == datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)

    def test_dst_start_day_is_23_hours(self):
        # 2025-03-09 북미 서머타임 시작
        start, end = day_window_utc(date(2025, 3, 9), "America/Edmonton")

        assert end - start == timedelta(hours=23)
