"""
Integration-style тесты сборки оракула

Покрывает:
- deploy_oracle: однократное чтение maturity, issuance = clock.now()
- price / price_w поверх общего ParameterStore
- Полный governance цикл через собранный оракул
- Ошибки развёртывания (maturity source, небезопасные параметры)
- OracleConfig и from_mapping
"""

import pytest
from pydantic import ValidationError

from src.audit import InMemoryAuditSink
from src.core.domain import ObservationType
from src.core.errors import InvariantViolation, OutOfRange, UpstreamUnavailable
from src.core.math import SCALE, SECONDS_PER_DAY, SECONDS_PER_YEAR
from src.governance import Capability, InMemoryAccessGateway, SafetyHorizon
from src.oracle import OracleConfig, PtOracle, deploy_oracle
from src.pricing import FixedMaturitySource, ManualClock, StaticPriceFeed


T0 = 1_700_000_000


class BrokenMaturitySource:
    def maturity_timestamp(self):
        raise TimeoutError("rpc timeout")


@pytest.fixture
def access():
    return InMemoryAccessGateway(
        {Capability.MANAGER: ["manager"], Capability.PARAMETER_ADMIN: ["admin"]}
    )


def deploy(access, lifetime_sec=SECONDS_PER_YEAR, config=None, sink=None, price=SCALE):
    clock = ManualClock(T0)
    feed = StaticPriceFeed(price)
    maturity = FixedMaturitySource(T0 + lifetime_sec)
    oracle = deploy_oracle(feed, maturity, access, config=config, clock=clock, audit_sink=sink)
    return oracle, clock, feed, maturity


class TestDeployOracle:
    """Тесты deploy_oracle."""

    def test_wiring(self, access):
        oracle, _, _, maturity = deploy(access)

        assert isinstance(oracle, PtOracle)
        assert oracle.engine.store is oracle.store
        assert oracle.governance.store is oracle.store
        assert oracle.store.instrument.issuance_ts == T0
        assert oracle.store.instrument.maturity_ts == T0 + SECONDS_PER_YEAR
        assert oracle.store.last_update_ts == T0
        assert maturity.reads == 1

    def test_maturity_read_once(self, access):
        oracle, clock, _, maturity = deploy(access)
        for _ in range(3):
            clock.advance(60)
            oracle.price()
            oracle.price_w()
        assert maturity.reads == 1

    def test_default_config_price(self, access):
        """slope 5% и 1 год до погашения → цена 0.95."""
        oracle, _, _, _ = deploy(access)
        assert oracle.price() == 95 * 10**16

    def test_price_w_caches(self, access):
        sink = InMemoryAuditSink()
        oracle, _, feed, _ = deploy(access, sink=sink)

        assert oracle.price_w() == 95 * 10**16
        assert oracle.engine.last_price == 95 * 10**16
        assert oracle.engine.last_update == T0

        feed.set_price(2 * SCALE)
        # В ту же секунду кэш свежий
        assert oracle.price() == 95 * 10**16
        assert len(sink.of_type(ObservationType.PRICE_UPDATED)) == 1

    def test_governance_cycle(self, access):
        sink = InMemoryAuditSink()
        oracle, clock, _, _ = deploy(access, sink=sink)

        clock.advance(SECONDS_PER_DAY + 1)
        result = oracle.governance.propose_update("manager", 10**17, 10**16)
        result.raise_if_rejected()

        # Новые параметры сразу используются ценой
        expected_discount = 10**17 * (SECONDS_PER_YEAR - SECONDS_PER_DAY - 1) // SECONDS_PER_YEAR
        assert oracle.price() <= SCALE - expected_discount - 10**16 + 10**12
        assert oracle.price() < 95 * 10**16

        assert len(sink.of_type(ObservationType.PARAMETER_CHANGED)) == 1

    def test_expired_at_deploy_returns_feed_price(self, access):
        oracle, _, feed, _ = deploy(access, lifetime_sec=0, price=123_456)
        assert oracle.engine.is_matured()
        assert oracle.price() == 123_456
        assert oracle.price_w() == 123_456
        assert oracle.engine.last_update is None

    def test_broken_maturity_source(self, access):
        with pytest.raises(UpstreamUnavailable):
            deploy_oracle(StaticPriceFeed(SCALE), BrokenMaturitySource(), access, clock=ManualClock(T0))

    def test_unsafe_initial_parameters(self, access):
        config = OracleConfig(slope=0, intercept=SCALE)
        with pytest.raises(InvariantViolation):
            deploy(access, config=config)

    def test_out_of_range_initial_parameters(self, access):
        with pytest.raises(OutOfRange):
            deploy(access, config=OracleConfig(slope=SCALE + 1))

    def test_custom_limits_from_config(self, access):
        config = OracleConfig(min_update_interval_sec=3600, max_slope_delta=10**16)
        oracle, clock, _, _ = deploy(access, config=config)

        clock.advance(3601)
        result = oracle.governance.propose_update("manager", 6 * 10**16, 0)
        assert result.accepted
        assert oracle.store.limits.max_slope_delta == 10**16


class TestOracleConfig:
    """Тесты конфигурации."""

    def test_defaults(self):
        config = OracleConfig()
        assert config.slope == 5 * 10**16
        assert config.intercept == 0
        assert config.min_update_interval_sec == 86400
        assert config.max_slope_delta == 0
        assert config.max_intercept_delta == 0
        assert config.seconds_per_year == SECONDS_PER_YEAR
        assert config.safety_horizon == SafetyHorizon.ISSUANCE

    def test_limits_property(self):
        limits = OracleConfig(max_intercept_delta=5).limits
        assert limits.max_intercept_delta == 5
        assert not limits.slope_delta_bounded
        assert limits.intercept_delta_bounded

    def test_from_mapping(self):
        config = OracleConfig.from_mapping(
            {"slope": 10**17, "min_update_interval_sec": 3600, "safety_horizon": "CURRENT"}
        )
        assert config.slope == 10**17
        assert config.min_update_interval_sec == 3600
        assert config.safety_horizon == SafetyHorizon.CURRENT
        assert config.intercept == 0

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            OracleConfig.from_mapping({"slope": 10**17, "feed_url": "http://x"})

    @pytest.mark.parametrize(
        "data",
        [
            {"slope": -1},
            {"intercept": SCALE + 1},
            {"seconds_per_year": 0},
            {"safety_horizon": "forever"},
        ],
    )
    def test_from_mapping_rejects_invalid_values(self, data):
        with pytest.raises(ValidationError):
            OracleConfig.from_mapping(data)

    def test_frozen(self):
        config = OracleConfig()
        with pytest.raises(AttributeError):
            config.slope = 1
