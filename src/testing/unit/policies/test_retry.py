import pytest

from widecolumn import (
    LimitedErrorCountRetryPolicy,
    LimitedTimeRetryPolicy,
    Status,
    StatusClassifier,
    StatusCode,
)
from widecolumn.policies import DEFAULT_MAXIMUM_DURATION, RetryPolicy

UNAVAILABLE = Status(StatusCode.UNAVAILABLE, "try again")
PERMANENT = Status(StatusCode.PERMISSION_DENIED, "uh oh")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_error_count_tolerates_exactly_k_failures():
    policy = LimitedErrorCountRetryPolicy(3)
    assert isinstance(policy, RetryPolicy)

    assert [policy.on_failure(UNAVAILABLE) for _ in range(4)] == [
        True,
        True,
        True,
        False,
    ]


def test_error_count_zero_never_retries():
    assert not LimitedErrorCountRetryPolicy(0).on_failure(UNAVAILABLE)


def test_error_count_stops_on_permanent_errors():
    policy = LimitedErrorCountRetryPolicy(3)
    assert not policy.on_failure(PERMANENT)
    # Permanent errors do not consume the budget
    assert policy.on_failure(UNAVAILABLE)


def test_error_count_clone_resets_the_budget():
    policy = LimitedErrorCountRetryPolicy(1)
    assert policy.on_failure(UNAVAILABLE)
    assert not policy.on_failure(UNAVAILABLE)

    clone = policy.clone()

    assert clone.maximum_failures == 1
    assert clone.on_failure(UNAVAILABLE)


def test_error_count_rejects_negative_budget():
    with pytest.raises(ValueError):
        LimitedErrorCountRetryPolicy(-1)


def test_can_retry_does_not_consume_the_budget():
    policy = LimitedErrorCountRetryPolicy(1)
    for _ in range(5):
        assert policy.can_retry(UNAVAILABLE)
        assert not policy.can_retry(PERMANENT)
    assert policy.on_failure(UNAVAILABLE)


def test_time_policy_expires():
    clock = FakeClock()
    policy = LimitedTimeRetryPolicy(10, clock=clock)

    assert policy.on_failure(UNAVAILABLE)
    clock.now += 9.5
    assert policy.on_failure(UNAVAILABLE)
    clock.now += 1
    assert not policy.on_failure(UNAVAILABLE)


def test_time_policy_stops_on_permanent_errors():
    policy = LimitedTimeRetryPolicy(10, clock=FakeClock())
    assert not policy.on_failure(PERMANENT)


def test_time_policy_clone_restarts_the_clock():
    clock = FakeClock()
    policy = LimitedTimeRetryPolicy(10, clock=clock)
    clock.now += 20
    assert not policy.on_failure(UNAVAILABLE)

    clone = policy.clone()

    assert clone.on_failure(UNAVAILABLE)


def test_time_policy_default_duration():
    assert LimitedTimeRetryPolicy().maximum_duration == DEFAULT_MAXIMUM_DURATION


def test_custom_classifier():
    classifier = StatusClassifier([StatusCode.PERMISSION_DENIED])
    policy = LimitedErrorCountRetryPolicy(2, classifier=classifier)

    assert policy.can_retry(PERMANENT)
    assert not policy.can_retry(UNAVAILABLE)
    # The classifier survives cloning
    assert policy.clone().can_retry(PERMANENT)


def test_error_count_large_budget():
    policy = LimitedErrorCountRetryPolicy(1000)

    outcomes = [policy.on_failure(UNAVAILABLE) for _ in range(1001)]

    assert outcomes.count(True) == 1000
    assert outcomes[-1] is False


def test_time_policy_zero_duration_never_retries():
    assert not LimitedTimeRetryPolicy(0, clock=FakeClock()).on_failure(UNAVAILABLE)
