"""
Tests for batch_engine.domain.schedule.

Validates the pure schedule functions: fixed-rate fire times, overlap
decisions and run-unique parameter builders.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from batch_engine.domain.schedule import (
    NONCE_KEY,
    RUN_ID_KEY,
    ParametersStrategy,
    RunIdIncrementer,
    compute_next_fire,
    nonce_parameters,
    should_fire,
)
from batch_engine.domain.types import JobParameters, OverlapPolicy


# =============================================================================
# compute_next_fire
# =============================================================================


class TestComputeNextFire:
    def test_before_anchor_returns_anchor(self):
        assert compute_next_fire(anchor=10.0, period=5.0, now=3.0) == 10.0

    def test_at_anchor_returns_next_period(self):
        assert compute_next_fire(anchor=10.0, period=5.0, now=10.0) == 15.0

    def test_mid_period(self):
        assert compute_next_fire(anchor=0.0, period=5.0, now=7.0) == 10.0

    def test_late_tick_does_not_drift(self):
        """A tick that overran several periods lands back on the grid."""
        assert compute_next_fire(anchor=0.0, period=5.0, now=23.5) == 25.0

    @pytest.mark.parametrize("period", [0, -1.0])
    def test_non_positive_period_rejected(self, period):
        with pytest.raises(ValueError, match="positive"):
            compute_next_fire(anchor=0.0, period=period, now=1.0)

    @settings(max_examples=200)
    @given(
        anchor=st.floats(min_value=0, max_value=1e6, allow_nan=False),
        period=st.floats(min_value=0.01, max_value=1e3, allow_nan=False),
        offset=st.floats(min_value=0, max_value=1e5, allow_nan=False),
    )
    def test_next_fire_is_after_now_and_within_one_period(self, anchor, period, offset):
        now = anchor + offset
        next_fire = compute_next_fire(anchor, period, now)
        assert next_fire > now or next_fire == pytest.approx(now)
        assert next_fire - now <= period + 1e-6 * max(1.0, now)


# =============================================================================
# should_fire
# =============================================================================


class TestShouldFire:
    def test_skip_if_running_idle(self):
        assert should_fire(OverlapPolicy.SKIP_IF_RUNNING, 0)

    def test_skip_if_running_busy(self):
        assert not should_fire(OverlapPolicy.SKIP_IF_RUNNING, 1)

    @pytest.mark.parametrize("policy", [OverlapPolicy.ALLOW, OverlapPolicy.QUEUE])
    @pytest.mark.parametrize("in_flight", [0, 1, 5])
    def test_allow_and_queue_always_fire(self, policy, in_flight):
        assert should_fire(policy, in_flight)


# =============================================================================
# Run parameters
# =============================================================================


class TestRunIdIncrementer:
    def test_first_instance(self):
        assert RunIdIncrementer().get_next(None) == JobParameters.from_mapping({RUN_ID_KEY: 1})

    def test_increments(self):
        previous = JobParameters.from_mapping({RUN_ID_KEY: 4})
        assert RunIdIncrementer().get_next(previous).get(RUN_ID_KEY) == 5

    def test_keeps_other_parameters(self):
        previous = JobParameters.from_mapping({RUN_ID_KEY: 1, "region": "eu"})
        nxt = RunIdIncrementer().get_next(previous)
        assert nxt.get("region") == "eu"

    def test_missing_key_starts_at_one(self):
        previous = JobParameters.from_mapping({"region": "eu"})
        assert RunIdIncrementer().get_next(previous).get(RUN_ID_KEY) == 1

    def test_custom_key(self):
        incrementer = RunIdIncrementer(key="seq")
        assert incrementer.key == "seq"
        assert incrementer.get_next(None).get("seq") == 1

    @given(st.integers(min_value=0, max_value=10_000))
    def test_next_always_differs(self, last):
        previous = JobParameters.from_mapping({RUN_ID_KEY: last})
        nxt = RunIdIncrementer().get_next(previous)
        assert nxt.identifying_key() != previous.identifying_key()


class TestNonceParameters:
    def test_adds_nonce(self):
        params = nonce_parameters(JobParameters(), 12345)
        assert params.get(NONCE_KEY) == 12345

    def test_distinct_nonces_give_distinct_instances(self):
        base = JobParameters.from_mapping({"region": "eu"})
        a = nonce_parameters(base, 1)
        b = nonce_parameters(base, 2)
        assert a.identifying_key() != b.identifying_key()
        assert a.get("region") == b.get("region") == "eu"

    def test_strategy_values(self):
        assert ParametersStrategy("nonce") is ParametersStrategy.NONCE
        assert ParametersStrategy("increment") is ParametersStrategy.INCREMENT
