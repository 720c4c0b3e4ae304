"""
Price Cache — кэш последней вычисленной цены

Свежесть не хранится флагом, а выводится сравнением timestamp кэша
с текущим временем:
- {stale} --store(price, now)--> {fresh}
- {fresh} → {stale} автоматически с началом следующей секунды

Инварианты:
- updated_at монотонно не убывает
- кэш пишется не чаще одного раза за секунду
"""

import logging

from src.core.domain.parameters import PriceCacheState
from src.core.errors import InvariantViolation
from src.core.math.fixed_point import validate_uint

logger = logging.getLogger(__name__)


class PriceCache:
    """Кэш цены. Состояние: immutable PriceCacheState, заменяемый целиком."""

    def __init__(self, state: PriceCacheState | None = None):
        self._state = state or PriceCacheState()

    @property
    def state(self) -> PriceCacheState:
        return self._state

    @property
    def price(self) -> int:
        return self._state.price

    @property
    def updated_at(self) -> int | None:
        return self._state.updated_at

    def is_fresh(self, now: int) -> bool:
        """True если кэш записан в текущую секунду."""
        return self._state.updated_at is not None and self._state.updated_at == now

    def store(self, price: int, now: int) -> PriceCacheState:
        """
        Запись новой цены.

        Raises:
            InvariantViolation: если now < updated_at (время пошло назад)
                или кэш уже записан в эту секунду
        """
        validate_uint(price, "price")
        validate_uint(now, "now")

        previous = self._state.updated_at
        if previous is not None and now <= previous:
            raise InvariantViolation(
                f"Cache timestamp must strictly increase between writes: "
                f"now={now}, updated_at={previous}"
            )

        self._state = PriceCacheState(price=price, updated_at=now)
        logger.debug("Price cache stored price=%d at ts=%d", price, now)
        return self._state
