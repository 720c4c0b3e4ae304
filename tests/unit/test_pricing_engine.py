"""Тесты для PricingEngine и PriceCache.

Coverage:
- Цена по линейной модели (slope, intercept, прогрессия по времени)
- read_price без побочных эффектов
- refresh_price: кэш не чаще раза в секунду, идемпотентность, события
- Поведение после погашения
- Ошибки feed и нарушение инварианта дисконта
"""

import pytest

from src.audit import InMemoryAuditSink
from src.core.contracts import validate_oracle_state
from src.core.domain import (
    DiscountParameters,
    Instrument,
    ObservationType,
    PriceCacheState,
    PriceUpdated,
    UpdateLimits,
)
from src.core.errors import InvariantViolation, UpstreamUnavailable
from src.core.math import SCALE, SECONDS_PER_DAY, SECONDS_PER_YEAR
from src.governance import GovernanceState, ParameterStore
from src.pricing import (
    CallablePriceFeed,
    ManualClock,
    PriceCache,
    PricingEngine,
    StaticPriceFeed,
)


T0 = 1_700_000_000


def make_engine(
    slope=5 * 10**17,
    intercept=0,
    lifetime_sec=SECONDS_PER_YEAR,
    price=10**18,
    sink=None,
):
    clock = ManualClock(T0)
    feed = StaticPriceFeed(price)
    instrument = Instrument(maturity_ts=T0 + lifetime_sec, issuance_ts=T0)
    store = ParameterStore(instrument=instrument, slope=slope, intercept=intercept)
    engine = PricingEngine(store=store, feed=feed, clock=clock, audit_sink=sink)
    return engine, feed, clock


# =============================================================================
# PRICE CACHE
# =============================================================================


class TestPriceCache:
    """Тесты PriceCache."""

    def test_empty_cache_is_stale(self):
        cache = PriceCache()
        assert cache.state.is_empty
        assert cache.updated_at is None
        assert not cache.is_fresh(T0)

    def test_fresh_only_within_same_second(self):
        cache = PriceCache()
        cache.store(123, T0)
        assert cache.is_fresh(T0)
        assert not cache.is_fresh(T0 + 1)
        assert cache.price == 123

    def test_second_write_same_second_rejected(self):
        cache = PriceCache()
        cache.store(123, T0)
        with pytest.raises(InvariantViolation):
            cache.store(124, T0)

    def test_time_going_backwards_rejected(self):
        cache = PriceCache(PriceCacheState(price=1, updated_at=T0))
        with pytest.raises(InvariantViolation):
            cache.store(2, T0 - 1)
        assert cache.state == PriceCacheState(price=1, updated_at=T0)


# =============================================================================
# PRICE FORMULA
# =============================================================================


class TestPriceFormula:
    """Тесты формулы цены на временной оси."""

    def test_discount_model_with_time_jumps(self):
        """slope=50%: 1 год → 0.5, полгода → 0.75, на погашении → цена feed."""
        engine, _, clock = make_engine(slope=5 * 10**17)

        assert engine.read_price() == 5 * 10**17

        clock.advance(SECONDS_PER_YEAR // 2)
        assert engine.read_price() == 75 * 10**16

        clock.set(T0 + SECONDS_PER_YEAR - SECONDS_PER_DAY)
        expected = 10**18 - (5 * 10**17 * 10**18 // (365 * 10**18))
        assert abs(engine.read_price() - expected) < 10**14

        clock.set(T0 + SECONDS_PER_YEAR)
        assert engine.read_price() == 10**18

    def test_discount_with_intercept(self):
        """slope=20%, intercept=10%: 0.7 → 0.8 → ~0.9 перед погашением."""
        engine, _, clock = make_engine(slope=2 * 10**17, intercept=10**17)

        assert engine.read_price() == 7 * 10**17

        clock.advance(SECONDS_PER_YEAR // 2)
        assert engine.read_price() == 8 * 10**17

        clock.set(T0 + SECONDS_PER_YEAR - 3600)
        assert abs(engine.read_price() - 9 * 10**17) < 10**15

    def test_linear_progression(self):
        """slope=36.5%, 100 дней: 1.8 → 1.9 → 1.98 при цене underlying 2.0."""
        engine, _, clock = make_engine(
            slope=365 * 10**15, lifetime_sec=100 * SECONDS_PER_DAY, price=2 * 10**18
        )

        assert abs(engine.read_price() - 18 * 10**17) < 10**15
        clock.advance(50 * SECONDS_PER_DAY)
        assert abs(engine.read_price() - 19 * 10**17) < 10**15
        clock.advance(40 * SECONDS_PER_DAY)
        assert abs(engine.read_price() - 198 * 10**16) < 10**15

    def test_underlying_price_changes(self):
        engine, feed, _ = make_engine(slope=5 * 10**16, lifetime_sec=30 * SECONDS_PER_DAY)
        initial = engine.read_price()

        feed.set_price(2 * 10**18)
        new_price = engine.read_price()

        assert new_price > initial
        assert new_price < 2 * 10**18

    def test_thirty_day_five_percent(self):
        engine, _, _ = make_engine(slope=5 * 10**16, lifetime_sec=30 * SECONDS_PER_DAY)
        expected = int(10**18 * (1 - 30 / 365 * 0.05))
        assert abs(engine.read_price() - expected) < 10**18 // 1000

    def test_quote_details(self):
        engine, _, _ = make_engine(slope=5 * 10**17)
        quote = engine.quote()
        assert quote.price == 5 * 10**17
        assert quote.underlying_price == 10**18
        assert quote.discount == 5 * 10**17
        assert quote.time_to_maturity_sec == SECONDS_PER_YEAR
        assert not quote.matured

    def test_views(self):
        engine, _, clock = make_engine(slope=5 * 10**17)
        assert engine.maturity_ts == T0 + SECONDS_PER_YEAR
        assert engine.time_to_maturity() == SECONDS_PER_YEAR
        assert engine.current_discount() == 5 * 10**17
        assert not engine.is_matured()

        clock.set(T0 + SECONDS_PER_YEAR + 10)
        assert engine.time_to_maturity() == 0
        assert engine.current_discount() == 0
        assert engine.is_matured()


# =============================================================================
# READ / REFRESH
# =============================================================================


class TestReadAndRefresh:
    """Тесты read_price / refresh_price."""

    def test_read_price_has_no_side_effects(self):
        sink = InMemoryAuditSink()
        engine, _, _ = make_engine(sink=sink)

        engine.read_price()

        assert engine.last_update is None
        assert engine.last_price == 0
        assert sink.observations == []

    def test_refresh_caches_price(self):
        engine, _, _ = make_engine()
        price = engine.refresh_price()
        assert engine.last_price == price
        assert engine.last_update == T0

    def test_refresh_idempotent_within_second(self):
        sink = InMemoryAuditSink()
        engine, feed, _ = make_engine(sink=sink)

        price1 = engine.refresh_price()
        reads_after_first = feed.reads
        price2 = engine.refresh_price()

        assert price1 == price2
        assert feed.reads == reads_after_first
        assert len(sink.of_type(ObservationType.PRICE_UPDATED)) == 1

    def test_read_after_refresh_same_second_identical(self):
        engine, feed, _ = make_engine()
        refreshed = engine.refresh_price()

        feed.set_price(3 * 10**18)

        assert engine.read_price() == refreshed

    def test_refresh_updates_next_second(self):
        sink = InMemoryAuditSink()
        engine, _, clock = make_engine(sink=sink)

        price1 = engine.refresh_price()
        clock.advance(1)
        price2 = engine.refresh_price()

        # Меньше времени до погашения → меньше дисконт → выше цена
        assert price2 > price1
        assert engine.last_update == T0 + 1
        events = sink.of_type(ObservationType.PRICE_UPDATED)
        assert len(events) == 2
        assert events[0] == PriceUpdated(
            ts=T0, price=price1, underlying_price=10**18, discount=5 * 10**17
        )

    def test_refresh_after_hour(self):
        engine, _, clock = make_engine(slope=5 * 10**16, lifetime_sec=30 * SECONDS_PER_DAY)
        price1 = engine.refresh_price()
        clock.advance(3600)
        price2 = engine.refresh_price()
        assert price2 != price1
        assert engine.last_update == T0 + 3600

    def test_stale_read_uses_live_feed(self):
        engine, feed, clock = make_engine()
        engine.refresh_price()
        clock.advance(1)
        feed.set_price(2 * 10**18)
        assert engine.read_price() > engine.last_price


# =============================================================================
# MATURITY
# =============================================================================


class TestMaturity:
    """Тесты поведения на и после погашения."""

    def test_post_maturity_returns_feed_price(self):
        sink = InMemoryAuditSink()
        engine, feed, clock = make_engine(slope=SCALE // 2, intercept=10**17, sink=sink)
        engine.refresh_price()
        cached_at = engine.last_update

        clock.set(T0 + SECONDS_PER_YEAR)
        feed.set_price(1_234_567)

        assert engine.read_price() == 1_234_567
        assert engine.refresh_price() == 1_234_567
        assert engine.refresh_price() == 1_234_567
        assert engine.last_update == cached_at
        assert len(sink.of_type(ObservationType.PRICE_UPDATED)) == 1

    def test_post_maturity_tracks_every_feed_change(self):
        engine, feed, clock = make_engine()
        clock.set(T0 + SECONDS_PER_YEAR + 100)

        assert engine.refresh_price() == 10**18
        feed.set_price(7)
        assert engine.refresh_price() == 7

    def test_expired_at_deploy(self):
        clock = ManualClock(T0)
        feed = StaticPriceFeed(10**18)
        instrument = Instrument(maturity_ts=T0 - 1, issuance_ts=T0)
        store = ParameterStore(instrument=instrument, slope=1, intercept=0)
        engine = PricingEngine(store=store, feed=feed, clock=clock)

        assert engine.read_price() == 10**18
        assert engine.refresh_price() == 10**18


# =============================================================================
# FAILURES
# =============================================================================


class TestFailures:
    """Тесты ошибок feed и инварианта."""

    def test_feed_unavailable(self):
        engine, feed, _ = make_engine()
        feed.set_unavailable()

        with pytest.raises(UpstreamUnavailable):
            engine.read_price()
        with pytest.raises(UpstreamUnavailable):
            engine.refresh_price()

        assert engine.last_update is None

    def test_feed_unavailable_after_maturity(self):
        engine, feed, clock = make_engine()
        clock.set(T0 + SECONDS_PER_YEAR)
        feed.set_unavailable()
        with pytest.raises(UpstreamUnavailable):
            engine.refresh_price()

    @pytest.mark.parametrize("bad_value", [-1, 1.5, None, "100"])
    def test_feed_invalid_value(self, bad_value):
        clock = ManualClock(T0)
        instrument = Instrument(maturity_ts=T0 + SECONDS_PER_DAY, issuance_ts=T0)
        store = ParameterStore(instrument=instrument, slope=0, intercept=0)
        engine = PricingEngine(store=store, feed=CallablePriceFeed(lambda: bad_value), clock=clock)

        with pytest.raises(UpstreamUnavailable):
            engine.read_price()

    def test_cache_not_served_when_feed_fails_next_second(self):
        engine, feed, clock = make_engine()
        engine.refresh_price()
        clock.advance(1)
        feed.set_unavailable()
        with pytest.raises(UpstreamUnavailable):
            engine.refresh_price()
        assert engine.last_update == T0

    def test_invariant_violation_is_not_clamped(self):
        """Параметры, обошедшие governance (discount > 100%), дают ошибку, а не цену 0."""
        engine, _, _ = make_engine()
        gov = engine.store.state
        engine.store._state = GovernanceState(
            parameters=DiscountParameters(slope=SCALE, intercept=SCALE),
            limits=UpdateLimits(),
            last_update_ts=gov.last_update_ts,
        )

        with pytest.raises(InvariantViolation):
            engine.read_price()
        with pytest.raises(InvariantViolation):
            engine.refresh_price()
        assert engine.last_update is None


# =============================================================================
# SNAPSHOT
# =============================================================================


class TestSnapshot:
    """Тесты снапшота состояния."""

    def test_snapshot_matches_contract(self):
        engine, _, _ = make_engine()
        engine.refresh_price()

        snapshot = engine.snapshot()

        assert snapshot.parameters.slope == 5 * 10**17
        assert snapshot.cache.updated_at == T0
        assert snapshot.last_update_ts == T0
        validate_oracle_state(snapshot.model_dump(mode="json"))

    def test_empty_cache_snapshot_matches_contract(self):
        engine, _, _ = make_engine()
        validate_oracle_state(engine.snapshot().model_dump(mode="json"))
