from fakes import FixedClock

from sms_assistant.config import RateLimitConfig
from sms_assistant.core.rate_limiter import RateLimiter


def make_limiter(capacity=5, window_ms=60_000):
    clock = FixedClock()
    return RateLimiter(capacity, window_ms, clock=clock), clock


def test_exactly_capacity_immediate_calls_succeed():
    limiter, _ = make_limiter()
    results = [limiter.consume("+15550001") for _ in range(6)]
    assert results == [True, True, True, True, True, False]


def test_full_window_refills_bucket_completely():
    limiter, clock = make_limiter()
    for _ in range(7):
        limiter.consume("+15550001")

    clock.advance(60_000)

    assert [limiter.consume("+15550001") for _ in range(6)] == [True] * 5 + [False]


def test_partial_refill_is_continuous():
    limiter, clock = make_limiter(capacity=4, window_ms=4096)
    for _ in range(4):
        limiter.consume("a")
    assert limiter.consume("a") is False

    # One token every 1024 ms
    clock.advance(1023)
    assert limiter.consume("a") is False
    clock.advance(1)
    assert limiter.consume("a") is True
    assert limiter.consume("a") is False


def test_tokens_never_exceed_capacity_or_go_negative():
    limiter, clock = make_limiter(capacity=3)
    limiter.consume("a")
    clock.advance(10 * 60_000)
    limiter.consume("a")
    assert limiter.tokens("a") == 2

    for _ in range(10):
        limiter.consume("a")
    assert limiter.tokens("a") >= 0


def test_rejected_call_still_records_refill():
    limiter, clock = make_limiter(capacity=1, window_ms=1024)
    assert limiter.consume("a") is True
    clock.advance(512)
    assert limiter.consume("a") is False
    assert limiter.tokens("a") == 0.5
    clock.advance(512)
    assert limiter.consume("a") is True


def test_empty_identifier_is_never_limited():
    limiter, _ = make_limiter(capacity=1)
    assert all(limiter.consume("") for _ in range(10))
    assert all(limiter.consume(None) for _ in range(10))


def test_identifiers_have_independent_buckets():
    limiter, _ = make_limiter(capacity=1)
    assert limiter.consume("a") is True
    assert limiter.consume("a") is False
    assert limiter.consume("b") is True


def test_identifiers_are_used_verbatim():
    limiter, _ = make_limiter(capacity=1)
    assert limiter.consume("+1 415 555 1234") is True
    assert limiter.consume("14155551234") is True


def test_from_config_and_reset():
    clock = FixedClock()
    limiter = RateLimiter.from_config(RateLimitConfig(capacity=2, refill_window_ms=1000), clock=clock)
    assert limiter.capacity == 2
    limiter.consume("a")
    limiter.consume("a")
    assert limiter.consume("a") is False
    limiter.reset()
    assert limiter.consume("a") is True
