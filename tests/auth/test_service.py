"""Tests for VerificationService - the email code flow."""

from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from auth.exceptions import (
    CodeExpiredError,
    CodeMismatchError,
    EmailSendFailedError,
    InvalidDomainError,
    NoPendingCodeError,
    RateLimitedError,
)
from auth.rate_limiter import RateLimiter
from auth.service import VerificationService, generate_code
from core.models import PendingCode
from factories import counting_valkey, make_user, seed
from utils.timezone import now_utc

EMAIL = "slug@ucsc.edu"


@pytest.fixture
def service(auth_config, config, store, notifier):
    return VerificationService(auth_config, config, store, notifier)


def pending_code(store, email=EMAIL) -> str:
    return store.snapshot().pending_codes[email].code


def different_code(code: str) -> str:
    return "100000" if code != "100000" else "100001"


class TestGenerateCode:

    def test_six_digits_in_range(self):
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6
            assert 100000 <= int(code) <= 999999


class TestRequestCode:
    """Issuing codes."""

    def test_stores_code_and_sends_email(self, service, store, notifier):
        service.request_code(EMAIL)

        code = pending_code(store)
        notifier.send.assert_called_once()
        to, template = notifier.send.call_args.args
        assert to == EMAIL
        assert template.sender == "verification"
        assert code in template.body
        assert "15 minutes" in template.body

    def test_email_is_normalized(self, service, store):
        service.request_code("  Slug@UCSC.edu ")
        assert EMAIL in store.snapshot().pending_codes

    def test_other_domain_rejected(self, service, store, notifier):
        with pytest.raises(InvalidDomainError, match="@ucsc.edu"):
            service.request_code("slug@gmail.com")

        assert store.snapshot().pending_codes == {}
        notifier.send.assert_not_called()

    def test_allow_listed_test_address_accepted(self, service, store):
        service.request_code("tester@example.com")
        assert "tester@example.com" in store.snapshot().pending_codes

    def test_new_request_replaces_pending_code(self, service, store):
        with patch("auth.service.generate_code", side_effect=["111111", "222222"]):
            service.request_code(EMAIL)
            service.request_code(EMAIL)

        assert pending_code(store) == "222222"

    def test_send_failure_raises_but_keeps_code(self, service, store, notifier):
        notifier.send.return_value = False

        with pytest.raises(EmailSendFailedError):
            service.request_code(EMAIL)

        assert EMAIL in store.snapshot().pending_codes

    def test_rate_limiter_consulted(self, auth_config, config, store, notifier):
        limiter = Mock(spec=RateLimiter)
        limiter.check_rate_limit.side_effect = RateLimitedError(120)
        service = VerificationService(auth_config, config, store, notifier, limiter)

        with pytest.raises(RateLimitedError):
            service.request_code(EMAIL)

        limiter.check_rate_limit.assert_called_once_with(EMAIL)
        notifier.send.assert_not_called()


class TestVerifyCode:
    """Checking codes and creating users."""

    def test_wrong_code_then_right_code(self, service, store):
        """A mismatch keeps the pending entry so the user can retry."""
        service.request_code(EMAIL)
        code = pending_code(store)

        with pytest.raises(CodeMismatchError):
            service.verify_code(EMAIL, different_code(code))
        assert EMAIL in store.snapshot().pending_codes

        user = service.verify_code(EMAIL, code)

        assert user.email == EMAIL
        assert user.matched is False
        assert user.intro == ""
        assert user.last_login is not None
        db = store.snapshot()
        assert EMAIL in db.users
        assert EMAIL not in db.pending_codes

    def test_code_is_single_use(self, service, store):
        service.request_code(EMAIL)
        code = pending_code(store)
        service.verify_code(EMAIL, code)

        with pytest.raises(NoPendingCodeError):
            service.verify_code(EMAIL, code)

    def test_no_pending_code(self, service):
        with pytest.raises(NoPendingCodeError):
            service.verify_code(EMAIL, "123456")

    def test_expired_code_deleted_and_no_user_created(self, service, store):
        service.request_code(EMAIL)
        code = pending_code(store)
        later = now_utc() + timedelta(minutes=16)

        with patch("auth.service.now_utc", return_value=later):
            with pytest.raises(CodeExpiredError):
                service.verify_code(EMAIL, code)

        db = store.snapshot()
        assert EMAIL not in db.pending_codes
        assert EMAIL not in db.users

    def test_code_valid_just_inside_window(self, service, store):
        service.request_code(EMAIL)
        code = pending_code(store)
        later = now_utc() + timedelta(minutes=14)

        with patch("auth.service.now_utc", return_value=later):
            user = service.verify_code(EMAIL, code)

        assert user.email == EMAIL

    def test_returning_user_keeps_profile(self, service, store):
        seed(store, make_user(EMAIL, "I already wrote my introduction here."))
        before = store.snapshot().users[EMAIL]

        service.request_code(EMAIL)
        user = service.verify_code(EMAIL, pending_code(store))

        assert user.intro == before.intro
        assert user.created_at == before.created_at
        assert user.last_login is not None

    def test_code_with_whitespace_accepted(self, service, store):
        service.request_code(EMAIL)
        user = service.verify_code(EMAIL.upper(), f" {pending_code(store)} ")
        assert user.email == EMAIL

    def test_success_resets_rate_limit(self, auth_config, config, store, notifier):
        limiter = Mock(spec=RateLimiter)
        service = VerificationService(auth_config, config, store, notifier, limiter)

        service.request_code(EMAIL)
        service.verify_code(EMAIL, pending_code(store))

        limiter.reset_rate_limit.assert_called_once_with(EMAIL)

    def test_guessing_is_throttled(self, auth_config, config, store, notifier):
        """Wrong guesses count toward a limit that also blocks the right code."""
        limited = auth_config.model_copy(update={"verify_attempts": 3})
        limiter = RateLimiter(counting_valkey(), limited)
        service = VerificationService(limited, config, store, notifier, limiter)
        service.request_code(EMAIL)
        code = pending_code(store)

        for _ in range(3):
            with pytest.raises(CodeMismatchError):
                service.verify_code(EMAIL, different_code(code))

        with pytest.raises(RateLimitedError):
            service.verify_code(EMAIL, code)
        assert EMAIL not in store.snapshot().users
        assert EMAIL in store.snapshot().pending_codes

    def test_throttled_check_leaves_pending_code(self, auth_config, config, store, notifier):
        limiter = Mock(spec=RateLimiter)
        limiter.check_verify_attempts.side_effect = RateLimitedError(60)
        service = VerificationService(auth_config, config, store, notifier, limiter)
        service.request_code(EMAIL)

        with pytest.raises(RateLimitedError):
            service.verify_code(EMAIL, pending_code(store))

        limiter.check_verify_attempts.assert_called_once_with(EMAIL)
        limiter.reset_rate_limit.assert_not_called()


class TestSweepExpiredCodes:

    def test_removes_only_expired(self, service, store):
        now = now_utc()
        with store.transaction() as db:
            db.pending_codes["old@ucsc.edu"] = PendingCode(
                code="123456", issued_at=now - timedelta(minutes=30)
            )
            db.pending_codes["fresh@ucsc.edu"] = PendingCode(
                code="654321", issued_at=now - timedelta(minutes=1)
            )

        assert service.sweep_expired_codes() == 1
        assert set(store.snapshot().pending_codes) == {"fresh@ucsc.edu"}

    def test_nothing_to_sweep_does_not_write(self, service, store):
        store.save = Mock(wraps=store.save)
        assert service.sweep_expired_codes() == 0
        store.save.assert_not_called()
