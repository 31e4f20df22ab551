import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from sqlalchemy import select

from plaza_rewards.core.exceptions import NotFoundError, ValidationError
from plaza_rewards.models.plaza import RewardAccount, RewardTransaction, TokenTransactionType
from plaza_rewards.schemas.plaza import AwardTokensRequest
from plaza_rewards.services.daily_login_service import DailyLoginService
from plaza_rewards.services.token_service import TokenService, sanitize_display_name
from plaza_rewards.utils.date_utils import tenant_today

TENANT_ID = "school-1"
USER_ID = "user-1"


@pytest.fixture
def service(db, test_settings):
    return TokenService(db, settings=test_settings)


def _award(amount: int, transaction_type=TokenTransactionType.EARN_GAME) -> AwardTokensRequest:
    return AwardTokensRequest(
        amount=amount,
        transaction_type=transaction_type,
        source_type="math-blitz",
        source_id="game-42",
        description="Math Blitz win",
    )


class TestSanitizeDisplayName:
    def test_strips_markup_and_control_characters(self):
        assert sanitize_display_name("  <b>Ann</b>\x07   Lee ") == "Ann Lee"

    def test_truncates_to_fifty_characters(self):
        assert len(sanitize_display_name("x" * 80)) == 50

    def test_markup_only_becomes_empty(self):
        assert sanitize_display_name("<script></script>") == ""


class TestProvisionAccount:
    """리워드 계정 생성 테스트"""

    def test_creates_account_with_zero_values(self, db, service):
        # When
        account = service.provision_account(TENANT_ID, USER_ID, "Ann")

        # Then
        assert account.display_name == "Ann"
        assert account.balance == 0
        assert account.total_earned == 0
        assert account.streak_count == 0
        assert account.last_award_date is None

    def test_existing_account_is_returned(self, db, service, make_account):
        # Given
        make_account(balance=30, total_earned=30)

        # When
        account = service.provision_account(TENANT_ID, USER_ID, "Someone Else")

        # Then
        assert account.display_name == "Test Student"
        assert account.balance == 30
        count = len(db.execute(select(RewardAccount)).scalars().all())
        assert count == 1

    def test_concurrent_create_returns_winner(self, db, service, make_account):
        """다른 요청이 먼저 생성하여 유니크 제약에 걸린 경우"""
        # Given
        make_account(balance=7)
        existing = service.account_repo.get_by_owner(TENANT_ID, USER_ID)
        service.account_repo.get_by_owner = Mock(side_effect=[None, existing])

        # When
        account = service.provision_account(TENANT_ID, USER_ID, "Ann")

        # Then
        assert account.balance == 7
        assert service.account_repo.get_by_owner.call_count == 2

    def test_empty_display_name_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.provision_account(TENANT_ID, USER_ID, "<i></i>")

        assert exc_info.value.status_code == 422

    def test_get_account_returns_none_when_missing(self, service):
        assert service.get_account(TENANT_ID, USER_ID) is None


class TestAwardTokens:
    """활동 보상 지급 테스트"""

    def test_award_increments_balance_and_records_entry(self, db, service, make_account):
        # Given
        account = make_account(balance=10, total_earned=10)

        # When
        result = service.award_tokens(TENANT_ID, USER_ID, _award(15))

        # Then
        assert result.success is True
        assert result.amount == 15
        assert result.balance_after == 25
        assert result.transaction_id is not None

        entry = db.get(RewardTransaction, result.transaction_id)
        assert entry.account_id == account.id
        assert entry.transaction_type == "earn_game"
        assert entry.source_type == "math-blitz"
        assert entry.source_id == "game-42"
        assert entry.balance_after == 25

    def test_award_is_clamped_to_daily_cap(self, db, service, make_account):
        # Given
        make_account()

        # When
        first = service.award_tokens(TENANT_ID, USER_ID, _award(80))
        second = service.award_tokens(TENANT_ID, USER_ID, _award(50))
        third = service.award_tokens(TENANT_ID, USER_ID, _award(10))

        # Then
        assert first.amount == 80
        assert second.amount == 20
        assert second.message == "Tokens awarded (clamped to daily cap)"
        assert third.success is False
        assert third.amount == 0
        assert third.transaction_id is None
        assert third.balance_after == 100
        assert third.message == "Daily token cap reached"
        assert len(db.execute(select(RewardTransaction)).scalars().all()) == 2

    def test_daily_login_type_is_rejected(self, service, make_account):
        make_account()
        with pytest.raises(ValidationError):
            service.award_tokens(
                TENANT_ID, USER_ID, _award(5, TokenTransactionType.EARN_DAILY_LOGIN)
            )

    def test_missing_account_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.award_tokens(TENANT_ID, USER_ID, _award(5))

    def test_ledger_balance_after_tracks_running_balance(
        self, db, service, test_settings, make_account
    ):
        """원장의 balance_after 는 생성 순서대로 amount 의 누적합과 일치"""
        # Given
        account = make_account()
        today = tenant_today("UTC")
        daily = DailyLoginService(db, settings=test_settings)

        # When
        service.award_tokens(TENANT_ID, USER_ID, _award(12))
        daily.record_daily_login(TENANT_ID, USER_ID, today=today)
        service.award_tokens(
            TENANT_ID, USER_ID, _award(8, TokenTransactionType.EARN_STUDY_SESSION)
        )

        # Then
        entries = (
            db.execute(
                select(RewardTransaction)
                .where(RewardTransaction.account_id == account.id)
                .order_by(RewardTransaction.id)
            )
            .scalars()
            .all()
        )
        running = 0
        for entry in entries:
            running += entry.amount
            assert entry.balance_after == running
        assert [e.amount for e in entries] == [12, 5, 8]
        assert service.get_account(TENANT_ID, USER_ID).balance == running


class TestTokenInfo:
    """토큰 정보 조회 테스트"""

    def test_summarizes_today_and_recent(self, db, service, make_account, add_transaction):
        # Given
        account = make_account(balance=120, total_earned=150)
        now = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
        add_transaction(account, 30, now - timedelta(days=2), balance_after=30)
        add_transaction(account, 40, now - timedelta(seconds=2), balance_after=70)
        add_transaction(account, 50, now - timedelta(seconds=1), balance_after=120)

        # When
        info = service.get_token_info(TENANT_ID, USER_ID, today=tenant_today("UTC", now))

        # Then
        assert info.balance == 120
        assert info.tokens_earned_total == 150
        assert info.tokens_earned_today == 90
        assert info.daily_cap == 100
        assert info.daily_cap_remaining == 10
        assert [t.amount for t in info.recent_transactions] == [50, 40, 30]

    def test_recent_transactions_are_limited(self, db, test_settings, make_account, add_transaction):
        # Given
        settings = test_settings.model_copy(update={"RECENT_TRANSACTIONS_LIMIT": 2})
        service = TokenService(db, settings=settings)
        account = make_account()
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        for i in range(4):
            add_transaction(account, i + 1, base + timedelta(minutes=i))

        # When
        info = service.get_token_info(TENANT_ID, USER_ID)

        # Then
        assert [t.amount for t in info.recent_transactions] == [4, 3]

    def test_missing_account_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.get_token_info(TENANT_ID, USER_ID)
