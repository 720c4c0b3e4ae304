"""
Deploy — сборка оракула из конфигурации и внешних коллабораторов

deploy_oracle():
1. Один раз читает maturity из maturity source
2. Фиксирует issuance_ts = clock.now()
3. Создаёт ParameterStore (валидация начальных параметров)
4. Создаёт PricingEngine и GovernanceGateway поверх общего store
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.audit.sinks import AuditSink, NullAuditSink
from src.core.domain.parameters import Instrument
from src.governance.access import AccessGateway
from src.governance.gateway import GovernanceGateway
from src.governance.parameter_store import ParameterStore
from src.oracle.config import OracleConfig
from src.pricing.engine import PricingEngine
from src.pricing.feeds import (
    Clock,
    MaturitySource,
    SystemClock,
    UnderlyingPriceFeed,
    read_maturity,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PtOracle:
    """Собранный оракул: цена через engine, governance через gateway."""

    engine: PricingEngine
    store: ParameterStore
    governance: GovernanceGateway

    def price(self) -> int:
        return self.engine.read_price()

    def price_w(self) -> int:
        return self.engine.refresh_price()


def deploy_oracle(
    feed: UnderlyingPriceFeed,
    maturity_source: MaturitySource,
    access: AccessGateway,
    config: Optional[OracleConfig] = None,
    clock: Optional[Clock] = None,
    audit_sink: Optional[AuditSink] = None,
) -> PtOracle:
    """Сборка оракула.

    Raises:
        UpstreamUnavailable: maturity source недоступен
        OutOfRange / InvariantViolation: небезопасные начальные параметры
    """
    config = config or OracleConfig()
    clock = clock or SystemClock()
    audit_sink = audit_sink or NullAuditSink()

    maturity_ts = read_maturity(maturity_source)
    issuance_ts = clock.now()
    instrument = Instrument(maturity_ts=maturity_ts, issuance_ts=issuance_ts)

    store = ParameterStore(
        instrument=instrument,
        slope=config.slope,
        intercept=config.intercept,
        limits=config.limits,
        seconds_per_year=config.seconds_per_year,
        safety_horizon=config.safety_horizon,
        audit_sink=audit_sink,
    )
    engine = PricingEngine(store=store, feed=feed, clock=clock, audit_sink=audit_sink)
    governance = GovernanceGateway(access=access, store=store, clock=clock)

    logger.info(
        "PT oracle deployed: maturity_ts=%d, issuance_ts=%d, slope=%d, intercept=%d, horizon=%s",
        maturity_ts,
        issuance_ts,
        config.slope,
        config.intercept,
        config.safety_horizon.value,
    )
    return PtOracle(engine=engine, store=store, governance=governance)
