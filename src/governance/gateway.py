"""
Governance Gateway — авторизация governance вызовов

Единственная точка, где консультируется внешний access gateway:
- manager: propose_update, propose_update_from_target_yield
- parameter-admin: set_limits

При отсутствии capability возвращается отказ UNAUTHORIZED, состояние
ParameterStore не затрагивается. Чтение цены авторизации не требует.
"""

import logging
from typing import Optional

from src.core.errors import RejectionKind
from src.governance.access import AccessGateway, Capability
from src.governance.parameter_store import (
    LimitsUpdateResult,
    ParameterStore,
    ParameterUpdateResult,
)
from src.pricing.feeds import Clock

logger = logging.getLogger(__name__)


class GovernanceGateway:
    """Тонкий слой авторизации перед ParameterStore.

    Время берётся из clock, если now не передан явно.
    Ровно одна проверка capability на вызов.
    """

    def __init__(self, access: AccessGateway, store: ParameterStore, clock: Clock):
        self.access = access
        self.store = store
        self.clock = clock

    def propose_update(
        self, caller: str, new_slope: int, new_intercept: int, now: Optional[int] = None
    ) -> ParameterUpdateResult:
        """Обновление (slope, intercept), требуется capability manager."""
        if not self._authorized(caller, Capability.MANAGER):
            return self._unauthorized_update(caller, new_slope, new_intercept)

        return self.store.propose_update(new_slope, new_intercept, self._now(now))

    def propose_update_from_target_yield(
        self, caller: str, expected_annual_yield: int, now: Optional[int] = None
    ) -> ParameterUpdateResult:
        """Обновление slope по целевой доходности, требуется capability manager.

        При отказе пара (slope, intercept) не вычисляется, запрошенная
        доходность попадает в details.
        """
        if not self._authorized(caller, Capability.MANAGER):
            return self._unauthorized_update(
                caller, None, None, f"expected_annual_yield={expected_annual_yield!r}"
            )

        return self.store.propose_update_from_target_yield(expected_annual_yield, self._now(now))

    def set_limits(
        self,
        caller: str,
        min_update_interval_sec: int,
        max_slope_delta: int,
        max_intercept_delta: int,
        now: Optional[int] = None,
    ) -> LimitsUpdateResult:
        """Замена лимитов, требуется capability parameter-admin."""
        if not self._authorized(caller, Capability.PARAMETER_ADMIN):
            limits = self.store.limits
            return LimitsUpdateResult(
                accepted=False,
                reject_reason=RejectionKind.UNAUTHORIZED,
                previous=limits,
                limits=limits,
                details=f"caller {caller!r} lacks capability {Capability.PARAMETER_ADMIN.value}",
            )

        return self.store.set_limits(
            min_update_interval_sec, max_slope_delta, max_intercept_delta, self._now(now)
        )

    def _authorized(self, caller: str, capability: Capability) -> bool:
        allowed = bool(self.access.has_capability(caller, capability))
        if not allowed:
            logger.warning("Unauthorized governance call: %s lacks %s", caller, capability.value)
        return allowed

    def _unauthorized_update(
        self,
        caller: str,
        slope: Optional[int],
        intercept: Optional[int],
        request: Optional[str] = None,
    ) -> ParameterUpdateResult:
        current = self.store.parameters
        details = f"caller {caller!r} lacks capability {Capability.MANAGER.value}"
        if request is not None:
            details = f"{details} ({request})"
        return ParameterUpdateResult(
            accepted=False,
            reject_reason=RejectionKind.UNAUTHORIZED,
            proposed_slope=slope,
            proposed_intercept=intercept,
            previous=current,
            parameters=current,
            safety_discount=None,
            details=details,
        )

    def _now(self, now: Optional[int]) -> int:
        return self.clock.now() if now is None else now
