"""
Pricing Engine — цена principal token

Композиция DiscountModel + PriceCache + чтение внешнего feed:
    caller → maturity check → снапшот параметров + feed → discount → price

Операции:
- read_price(): без побочных эффектов
- refresh_price(): обновляет кэш не чаще одного раза за секунду

После погашения (now >= maturity_ts) обе операции возвращают цену feed
без дисконта, кэш не пишется.

Инвариант: discount > SCALE при live pricing является ошибкой governance,
InvariantViolation пробрасывается (никакого clamp).
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from src.audit.sinks import AuditSink, NullAuditSink, emit_observation
from src.core.domain.observations import PriceUpdated
from src.core.domain.parameters import Instrument, OracleState
from src.core.errors import InvariantViolation
from src.core.math.discount import apply_discount, discount_fraction
from src.core.math.fixed_point import SCALE
from src.governance.parameter_store import ParameterStore
from src.pricing.cache import PriceCache
from src.pricing.feeds import Clock, UnderlyingPriceFeed, read_underlying_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """Детализация одного вычисления цены."""

    price: int
    underlying_price: int
    discount: int  # 0 после погашения
    time_to_maturity_sec: int
    ts: int
    matured: bool


class PricingEngine:
    """Движок цены PT поверх ParameterStore и underlying feed.

    Инструмент и seconds_per_year берутся из ParameterStore, чтобы
    валидация параметров и live pricing использовали одну и ту же модель.
    """

    def __init__(
        self,
        store: ParameterStore,
        feed: UnderlyingPriceFeed,
        clock: Clock,
        cache: Optional[PriceCache] = None,
        audit_sink: Optional[AuditSink] = None,
    ):
        self.store = store
        self.feed = feed
        self.clock = clock
        self.cache = cache or PriceCache()
        self._audit_sink = audit_sink or NullAuditSink()
        self._write_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # VIEWS
    # -------------------------------------------------------------------------

    @property
    def instrument(self) -> Instrument:
        return self.store.instrument

    @property
    def maturity_ts(self) -> int:
        return self.instrument.maturity_ts

    @property
    def last_price(self) -> int:
        return self.cache.price

    @property
    def last_update(self) -> Optional[int]:
        return self.cache.updated_at

    def time_to_maturity(self, now: Optional[int] = None) -> int:
        return self.instrument.time_to_maturity(self._now(now))

    def is_matured(self, now: Optional[int] = None) -> bool:
        return self.instrument.is_matured(self._now(now))

    def current_discount(self, now: Optional[int] = None) -> int:
        """Текущий дисконт (0 после погашения). Feed не читается."""
        now = self._now(now)
        ttm = self.instrument.time_to_maturity(now)
        if ttm == 0:
            return 0

        params = self.store.parameters
        return discount_fraction(params.slope, params.intercept, ttm, self.store.seconds_per_year)

    def snapshot(self) -> OracleState:
        """Полный снапшот состояния для persistence."""
        gov = self.store.state
        return OracleState(
            instrument=self.instrument,
            parameters=gov.parameters,
            limits=gov.limits,
            cache=self.cache.state,
            last_update_ts=gov.last_update_ts,
        )

    # -------------------------------------------------------------------------
    # PRICE
    # -------------------------------------------------------------------------

    def read_price(self, now: Optional[int] = None) -> int:
        """Цена без мутации состояния.

        Если кэш записан в текущую секунду, возвращается кэшированная цена,
        так что read_price после refresh_price в ту же секунду даёт
        идентичное значение.

        Raises:
            UpstreamUnavailable: feed недоступен
            InvariantViolation: дисконт > 100%
        """
        now = self._now(now)

        if not self.instrument.is_matured(now) and self.cache.is_fresh(now):
            return self.cache.price

        return self.quote(now).price

    def refresh_price(self, now: Optional[int] = None) -> int:
        """Цена с обновлением кэша.

        - После погашения: цена feed, без записи в кэш
        - Кэш свежий (та же секунда): кэшированная цена, feed не читается
        - Иначе: пересчёт, запись (price, now), событие PriceUpdated
        """
        now = self._now(now)

        if self.instrument.is_matured(now):
            return read_underlying_price(self.feed)

        with self._write_lock:
            if self.cache.is_fresh(now):
                logger.debug("Price cache hit at ts=%d", now)
                return self.cache.price

            quote = self.quote(now)
            self.cache.store(quote.price, now)

        logger.info(
            "Price updated: %d (underlying=%d, discount=%d) at ts=%d",
            quote.price,
            quote.underlying_price,
            quote.discount,
            now,
        )
        emit_observation(
            self._audit_sink,
            PriceUpdated(
                ts=now,
                price=quote.price,
                underlying_price=quote.underlying_price,
                discount=quote.discount,
            ),
        )
        return quote.price

    def quote(self, now: Optional[int] = None) -> PriceQuote:
        """Вычисление цены с детализацией, без обращения к кэшу.

        Ровно одно чтение feed на вызов.
        """
        now = self._now(now)
        underlying_price = read_underlying_price(self.feed)
        ttm = self.instrument.time_to_maturity(now)

        if ttm == 0:
            return PriceQuote(
                price=underlying_price,
                underlying_price=underlying_price,
                discount=0,
                time_to_maturity_sec=0,
                ts=now,
                matured=True,
            )

        params = self.store.parameters
        discount = discount_fraction(
            params.slope, params.intercept, ttm, self.store.seconds_per_year
        )
        if discount > SCALE:
            logger.error(
                "Discount invariant violated: discount=%d, slope=%d, intercept=%d, ttm=%d",
                discount,
                params.slope,
                params.intercept,
                ttm,
            )
            raise InvariantViolation(
                f"Computed discount {discount} exceeds {SCALE} (100%) "
                f"at time_to_maturity={ttm}s"
            )

        return PriceQuote(
            price=apply_discount(underlying_price, discount),
            underlying_price=underlying_price,
            discount=discount,
            time_to_maturity_sec=ttm,
            ts=now,
            matured=False,
        )

    def _now(self, now: Optional[int]) -> int:
        return self.clock.now() if now is None else now
