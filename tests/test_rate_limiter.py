from datetime import timedelta

import pytest

from facepet.services.rate_limiter import GeocodeRateLimiter, RateLimited


def test_sixth_send_in_window_is_denied(limiter, clock):
    first_call = clock()
    for _ in range(5):
        assert limiter.check("u@x.com").allowed
        clock.advance(seconds=30)

    result = limiter.check("u@x.com")
    assert not result.allowed
    assert result.reset_at == first_call + timedelta(minutes=15)


def test_new_window_after_reset_time(limiter, clock):
    for _ in range(5):
        limiter.check("u@x.com")
    assert not limiter.check("u@x.com").allowed

    # The window is only over once now is strictly past reset time
    clock.advance(minutes=15)
    assert not limiter.check("u@x.com").allowed
    clock.advance(seconds=1)
    assert limiter.check("u@x.com").allowed


def test_addresses_are_counted_separately_and_case_insensitively(limiter):
    for _ in range(5):
        limiter.check("U@x.com")
    assert not limiter.check("u@X.com").allowed
    assert limiter.check("other@x.com").allowed


def test_raise_for_limit(limiter):
    for _ in range(5):
        limiter.check("u@x.com").raise_for_limit("u@x.com")
    with pytest.raises(RateLimited) as exc:
        limiter.check("u@x.com").raise_for_limit("u@x.com")
    assert exc.value.reset_at is not None
    assert exc.value.key == "u@x.com"
    assert exc.value.reset_at.isoformat() in str(exc.value)


def test_cleanup_and_status(limiter, clock):
    limiter.check("a@x.com")
    clock.advance(minutes=10)
    limiter.check("b@x.com")
    limiter.check("b@x.com")

    status = limiter.status()
    assert status["total_entries"] == 2
    counts = {entry["email"]: entry["count"] for entry in status["entries"]}
    assert counts == {"a@x.com": 1, "b@x.com": 2}

    clock.advance(minutes=6)
    assert limiter.cleanup() == 1
    assert [entry["email"] for entry in limiter.status()["entries"]] == ["b@x.com"]


def test_reset_forgets_address(limiter):
    for _ in range(5):
        limiter.check("u@x.com")
    limiter.reset("u@x.com")
    assert limiter.check("u@x.com").allowed


def test_geocode_limiter_keys_on_client(clock):
    limiter = GeocodeRateLimiter(clock=clock)
    for _ in range(10):
        assert limiter.check("203.0.113.7").allowed
    assert not limiter.check("203.0.113.7").allowed
    assert limiter.check("198.51.100.2").allowed

    entries = limiter.status()["entries"]
    assert {entry["client"] for entry in entries} == {"203.0.113.7", "198.51.100.2"}
