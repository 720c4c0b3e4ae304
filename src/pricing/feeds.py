"""
External Collaborators — контракты внешних источников данных

Ядро оракула только читает коллабораторов, никогда не даёт им доступ
на запись к своему состоянию:
- UnderlyingPriceFeed: текущая цена underlying (может завершиться ошибкой)
- MaturitySource: фиксированный timestamp погашения (читается один раз)
- Clock: текущее время в секундах (дискретная единица времени кэша)

Reference-адаптеры (StaticPriceFeed, FixedMaturitySource, ManualClock,
SystemClock) используются при локальном развёртывании и в тестах.
"""

import logging
import time
from typing import Callable, Protocol, runtime_checkable

from src.core.errors import UpstreamUnavailable
from src.core.math.fixed_point import is_uint

logger = logging.getLogger(__name__)


# =============================================================================
# PROTOCOLS
# =============================================================================


@runtime_checkable
class UnderlyingPriceFeed(Protocol):
    """Источник текущей цены underlying (fixed-point int)."""

    def current_price(self) -> int: ...


@runtime_checkable
class MaturitySource(Protocol):
    """Источник timestamp погашения инструмента."""

    def maturity_timestamp(self) -> int: ...


@runtime_checkable
class Clock(Protocol):
    """Источник текущего времени (UTC, целые секунды)."""

    def now(self) -> int: ...


# =============================================================================
# SAFE READS
# =============================================================================


def read_underlying_price(feed: UnderlyingPriceFeed) -> int:
    """
    Одно чтение feed с нормализацией ошибок.

    Любое исключение feed или невалидное значение (не int, отрицательное)
    → UpstreamUnavailable. Retry не выполняется.
    """
    try:
        price = feed.current_price()
    except UpstreamUnavailable:
        raise
    except Exception as e:
        logger.warning("Underlying price feed read failed: %s", e)
        raise UpstreamUnavailable(f"Underlying price feed read failed: {e}") from e

    if not is_uint(price):
        logger.warning("Underlying price feed returned invalid value: %r", price)
        raise UpstreamUnavailable(f"Underlying price feed returned invalid value: {price!r}")

    return price


def read_maturity(source: MaturitySource) -> int:
    """Одно чтение maturity source с нормализацией ошибок."""
    try:
        maturity_ts = source.maturity_timestamp()
    except UpstreamUnavailable:
        raise
    except Exception as e:
        raise UpstreamUnavailable(f"Maturity source read failed: {e}") from e

    if not is_uint(maturity_ts):
        raise UpstreamUnavailable(f"Maturity source returned invalid value: {maturity_ts!r}")

    return maturity_ts


# =============================================================================
# REFERENCE ADAPTERS
# =============================================================================


class StaticPriceFeed:
    """
    Feed с вручную устанавливаемой ценой.

    set_unavailable() переводит feed в состояние отказа (для тестов).
    """

    def __init__(self, price: int):
        self._price = price
        self._unavailable = False
        self.reads = 0

    def current_price(self) -> int:
        self.reads += 1
        if self._unavailable:
            raise ConnectionError("price feed unavailable")
        return self._price

    def set_price(self, price: int) -> None:
        self._price = price

    def set_unavailable(self, unavailable: bool = True) -> None:
        self._unavailable = unavailable


class CallablePriceFeed:
    """Адаптер произвольной функции без аргументов к UnderlyingPriceFeed."""

    def __init__(self, fn: Callable[[], int]):
        self._fn = fn

    def current_price(self) -> int:
        return self._fn()


class FixedMaturitySource:
    """Maturity source с фиксированным timestamp."""

    def __init__(self, maturity_ts: int):
        self._maturity_ts = maturity_ts
        self.reads = 0

    def maturity_timestamp(self) -> int:
        self.reads += 1
        return self._maturity_ts


class ManualClock:
    """Часы, управляемые вручную (детерминированные тесты и backtests)."""

    def __init__(self, start: int):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> None:
        self._now = ts

    def advance(self, seconds: int) -> int:
        self._now += seconds
        return self._now


class SystemClock:
    """Системные часы UTC, округление вниз до секунды."""

    def now(self) -> int:
        return int(time.time())
