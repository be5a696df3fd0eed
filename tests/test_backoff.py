import pytest

from crinformer import ExponentialBackoff


def test_delay_doubles_up_to_the_cap():
    backoff = ExponentialBackoff(base_delay=1, max_delay=30, jitter=0)
    assert [backoff.delay(attempt) for attempt in range(7)] == [1, 2, 4, 8, 16, 30, 30]


@pytest.mark.parametrize('attempt', [0, 1, 2, 3])
def test_jitter_adds_a_bounded_share(attempt):
    backoff = ExponentialBackoff(base_delay=1, max_delay=30, jitter=0.1)
    expected = 2 ** attempt
    for _ in range(100):
        assert expected <= backoff.delay(attempt) <= expected * 1.1


def test_jitter_never_exceeds_the_cap():
    backoff = ExponentialBackoff(base_delay=1, max_delay=30, jitter=0.5)
    for _ in range(100):
        assert backoff.delay(10) <= 30


def test_huge_attempts_do_not_overflow():
    backoff = ExponentialBackoff(base_delay=1, max_delay=30, jitter=0)
    assert backoff.delay(100000) == 30


def test_zero_base_delay():
    backoff = ExponentialBackoff(base_delay=0, max_delay=30)
    assert backoff.delay(5) == 0


def test_exhausted_after_max_retries():
    backoff = ExponentialBackoff(max_retries=3)
    assert not backoff.exhausted(0)
    assert not backoff.exhausted(2)
    assert backoff.exhausted(3)


def test_never_exhausted_without_max_retries():
    backoff = ExponentialBackoff(max_retries=None)
    assert not backoff.exhausted(10 ** 6)
