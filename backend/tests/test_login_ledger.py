from datetime import datetime, timedelta

import pytest

from app.core.exceptions import InvalidCredentialsError, TooManyAttemptsError
from app.models.login_attempt import LoginAttempt
import app.services.auth_service as auth_module
from app.services.auth_service import AuthService
from app.services.login_ledger import LoginAttemptLedger, describe_attempt, format_ip, parse_user_agent

from conftest import TEST_PASSWORD, make_settings

NOW = datetime(2026, 10, 19, 12, 0, 0)
EMAIL = "a@x.com"


@pytest.fixture
def ledger(db):
    return LoginAttemptLedger(db, make_settings().lockout_policy())


def _fail(ledger, minutes_ago, email=EMAIL):
    ledger.record_attempt(email, False, "10.0.0.1", "pytest", now=NOW - timedelta(minutes=minutes_ago))


def test_not_locked_below_threshold(ledger):
    for minutes in (1, 2, 3, 4):
        _fail(ledger, minutes)

    assert ledger.is_locked(EMAIL, NOW) is False


def test_locked_after_five_failures_in_window(ledger):
    for minutes in (1, 3, 5, 7, 9):
        _fail(ledger, minutes)

    assert ledger.is_locked(EMAIL, NOW) is True
    assert ledger.is_locked("other@x.com", NOW) is False


def test_lock_lifts_when_oldest_failure_ages_out(ledger):
    for minutes in (2, 4, 6, 8, 14):
        _fail(ledger, minutes)

    assert ledger.is_locked(EMAIL, NOW) is True
    assert ledger.is_locked(EMAIL, NOW + timedelta(minutes=1, seconds=1)) is False


def test_only_most_recent_attempts_are_examined(ledger):
    for minutes in (5, 6, 7, 8, 9):
        _fail(ledger, minutes)
    ledger.record_attempt(EMAIL, True, "10.0.0.1", "pytest", now=NOW - timedelta(minutes=1))

    # Newest five = one success + four failures
    assert ledger.failure_count(EMAIL, NOW) == 4
    assert ledger.is_locked(EMAIL, NOW) is False


@pytest.fixture
def auth_service(db, ledger, token_service):
    return AuthService(db, ledger, token_service, clock=lambda: NOW, bcrypt_rounds=4)


def test_login_locked_even_with_correct_password(db, make_admin, ledger, auth_service):
    make_admin(EMAIL)
    for minutes in (1, 2, 3, 4, 10):
        _fail(ledger, minutes)

    with pytest.raises(TooManyAttemptsError):
        auth_service.login(EMAIL, TEST_PASSWORD)

    # Lockout check appends nothing
    assert db.query(LoginAttempt).filter(LoginAttempt.email == EMAIL).count() == 5


def test_login_records_exactly_one_attempt_per_outcome(db, make_admin, auth_service):
    admin = make_admin(EMAIL)

    with pytest.raises(InvalidCredentialsError):
        auth_service.login(EMAIL, "wrong-password")
    result = auth_service.login(EMAIL, TEST_PASSWORD)

    attempts = db.query(LoginAttempt).order_by(LoginAttempt.id).all()
    assert [a.success for a in attempts] == [False, True]
    assert result.admin.id == admin.id


def test_sixth_attempt_after_five_failures_is_locked(make_admin, auth_service):
    make_admin(EMAIL)
    for _ in range(5):
        with pytest.raises(InvalidCredentialsError):
            auth_service.login(EMAIL, "wrong-password")

    with pytest.raises(TooManyAttemptsError):
        auth_service.login(EMAIL, TEST_PASSWORD)


def test_login_succeeds_once_window_passes(db, make_admin, ledger, token_service):
    make_admin(EMAIL)
    for minutes in (10, 11, 12, 13, 14):
        _fail(ledger, minutes)

    later = AuthService(db, ledger, token_service, clock=lambda: NOW + timedelta(minutes=2))
    result = later.login(EMAIL, TEST_PASSWORD)

    assert result.tokens.access_token


def test_inactive_and_unknown_accounts_fail_as_invalid(db, make_admin, auth_service):
    make_admin(EMAIL, is_active=False)

    with pytest.raises(InvalidCredentialsError):
        auth_service.login(EMAIL, TEST_PASSWORD)
    with pytest.raises(InvalidCredentialsError):
        auth_service.login("ghost@x.com", TEST_PASSWORD)

    assert db.query(LoginAttempt).filter(LoginAttempt.success.is_(False)).count() == 2


def test_device_info_parsing():
    chrome_windows = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
    safari_iphone = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile Safari/604.1"

    assert parse_user_agent(chrome_windows) == {"device": "Desktop", "browser": "Chrome", "os": "Windows"}
    assert parse_user_agent(safari_iphone) == {"device": "Mobile", "browser": "Safari", "os": "iOS"}
    assert parse_user_agent(None)["browser"] == "Unknown"
    assert format_ip("::1") == "localhost"
    assert format_ip("203.0.113.9") == "203.0.113.9"


def test_describe_attempt(ledger):
    attempt = ledger.record_attempt(EMAIL, True, "127.0.0.1", "curl/8.0", now=NOW)

    described = describe_attempt(attempt)

    assert described["formatted_ip"] == "localhost"
    assert described["device_name"] == "Unknown - Unknown"


def test_unknown_email_burns_hash_at_configured_cost(monkeypatch, db, ledger, token_service):
    seen = []

    def spy(password, rounds):
        seen.append(rounds)
        return False

    monkeypatch.setattr(auth_module, "burn_password_check", spy)
    service = AuthService(db, ledger, token_service, clock=lambda: NOW, bcrypt_rounds=5)

    with pytest.raises(InvalidCredentialsError):
        service.login("ghost@x.com", TEST_PASSWORD)

    assert seen == [5]
