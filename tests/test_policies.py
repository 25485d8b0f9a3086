from __future__ import annotations

import pytest

from core.config import AppSettings
from core.errors import ApiError, ErrorKind
from core.services.policies import (
    COUNTRIES_POLICY,
    COUNTRIES_RETRY,
    HOLIDAYS_POLICY,
    HOLIDAYS_RETRY,
    countries_policy,
    holidays_policy,
)


def test_default_ttls() -> None:
    assert COUNTRIES_POLICY.stale_time == 30 * 60
    assert HOLIDAYS_POLICY.stale_time == 15 * 60


def test_countries_backoff_is_capped() -> None:
    assert [COUNTRIES_RETRY.delay_for(n) for n in range(7)] == [1, 2, 4, 8, 16, 30, 30]


def test_holidays_backoff_is_capped() -> None:
    assert [HOLIDAYS_RETRY.delay_for(n) for n in range(5)] == [1, 2, 4, 8, 10]


def test_transport_errors_retry_until_ceiling() -> None:
    err = ApiError(ErrorKind.TRANSPORT, "down")

    assert [COUNTRIES_RETRY.should_retry(n, err) for n in (1, 2, 3, 4)] == [True, True, True, False]
    assert [HOLIDAYS_RETRY.should_retry(n, err) for n in (1, 2, 3)] == [True, True, False]


@pytest.mark.parametrize("policy", [COUNTRIES_RETRY, HOLIDAYS_RETRY])
def test_validation_is_never_retried(policy) -> None:
    assert not policy.should_retry(1, ApiError(ErrorKind.VALIDATION, "bad shape"))


def test_not_found_is_only_terminal_for_holidays() -> None:
    err = ApiError(ErrorKind.NOT_FOUND, "404", http_status=404)

    assert not HOLIDAYS_RETRY.should_retry(1, err)
    assert COUNTRIES_RETRY.should_retry(1, err)


def test_policies_follow_settings() -> None:
    settings = AppSettings(
        _env_file=None,
        countries_stale_minutes=60,
        holidays_stale_minutes=5,
        retry_base_delay_ms=500,
    )

    assert countries_policy(settings).stale_time == 3600
    assert holidays_policy(settings).stale_time == 300
    assert countries_policy(settings).retry.delay_for(0) == 0.5
    assert holidays_policy(settings).retry.max_delay == 10.0
    assert ErrorKind.NOT_FOUND in holidays_policy(settings).retry.non_retryable
