"""
Parameter Store — governed протокол обновления параметров дисконта

Хранит текущие (slope, intercept), лимиты обновлений и timestamp последнего
обновления. Каждое предложенное изменение валидируется целиком до commit.

Порядок проверок propose_update (fail fast, первое нарушение побеждает):
1. Rate limit: now > last_update_ts + min_update_interval_sec → иначе RATE_LIMITED
2. Range: slope <= SCALE и intercept <= SCALE → иначе OUT_OF_RANGE
3. Magnitude: |Δslope| <= max_slope_delta, |Δintercept| <= max_intercept_delta
   (0 = без ограничения) → иначе DELTA_EXCEEDED
4. Safety: дисконт на горизонте безопасности строго < 100% → иначе INVARIANT_VIOLATION

Горизонт безопасности (SafetyHorizon):
- ISSUANCE (default): полный срок жизни инструмента от инициализации
  до погашения. При slope >= 0 это худший случай, и проверка не ослабевает
  по мере приближения погашения.
- CURRENT: только текущее время до погашения (более слабая проверка).

Все четыре проверки выполняются против pre-commit состояния под одним lock;
читатели видят либо старый, либо новый снапшот целиком.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.audit.sinks import AuditSink, NullAuditSink, emit_observation
from src.core.domain.observations import LimitsChanged, ParameterChanged
from src.core.domain.parameters import DiscountParameters, Instrument, UpdateLimits
from src.core.errors import InvariantViolation, OutOfRange, RejectionKind, error_for
from src.core.math.discount import (
    is_discount_safe,
    max_discount_over_horizon,
    slope_from_target_yield,
)
from src.core.math.fixed_point import SCALE, SECONDS_PER_YEAR, abs_diff, is_uint

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class SafetyHorizon(str, Enum):
    """Время до погашения, на котором проверяется безопасность параметров."""

    ISSUANCE = "ISSUANCE"
    CURRENT = "CURRENT"


# =============================================================================
# STATE & RESULTS
# =============================================================================


@dataclass(frozen=True)
class GovernanceState:
    """Снапшот governed состояния (заменяется целиком при commit)."""

    parameters: DiscountParameters
    limits: UpdateLimits
    last_update_ts: int


@dataclass(frozen=True)
class ParameterUpdateResult:
    """Результат propose_update (tagged result)."""

    accepted: bool
    reject_reason: Optional[RejectionKind]

    # Предложенные значения (None, если пара не была вычислена)
    proposed_slope: Optional[int]
    proposed_intercept: Optional[int]

    # Параметры до и после вызова (совпадают при отказе)
    previous: DiscountParameters
    parameters: DiscountParameters

    # Дисконт на горизонте безопасности (None если проверка не дошла до safety)
    safety_discount: Optional[int]

    # Детали
    details: str

    def raise_if_rejected(self) -> "ParameterUpdateResult":
        """Преобразование отказа в типизированное исключение."""
        if not self.accepted and self.reject_reason is not None:
            raise error_for(self.reject_reason, self.details)
        return self


@dataclass(frozen=True)
class LimitsUpdateResult:
    """Результат set_limits (tagged result)."""

    accepted: bool
    reject_reason: Optional[RejectionKind]
    previous: UpdateLimits
    limits: UpdateLimits
    details: str

    def raise_if_rejected(self) -> "LimitsUpdateResult":
        if not self.accepted and self.reject_reason is not None:
            raise error_for(self.reject_reason, self.details)
        return self


# =============================================================================
# PARAMETER STORE
# =============================================================================


class ParameterStore:
    """Хранилище параметров дисконта с governed протоколом обновления.

    Инициализация валидирует начальные параметры теми же range и safety
    проверками, что и любое последующее обновление (исключения OutOfRange /
    InvariantViolation вместо tagged result). last_update_ts при инициализации
    равен issuance_ts инструмента, поэтому первое обновление возможно не раньше
    min_update_interval_sec после инициализации.
    """

    def __init__(
        self,
        instrument: Instrument,
        slope: int,
        intercept: int,
        limits: Optional[UpdateLimits] = None,
        seconds_per_year: int = SECONDS_PER_YEAR,
        safety_horizon: SafetyHorizon = SafetyHorizon.ISSUANCE,
        audit_sink: Optional[AuditSink] = None,
        last_update_ts: Optional[int] = None,
    ):
        """
        Args:
            instrument: инструмент (maturity_ts, issuance_ts)
            slope: начальный slope (fixed-point)
            intercept: начальный intercept (fixed-point)
            limits: лимиты обновлений (default: permissive UpdateLimits())
            seconds_per_year: секунд в году для конверсии времени
            safety_horizon: горизонт проверки безопасности
            audit_sink: приёмник событий
            last_update_ts: timestamp последнего обновления (восстановление из снапшота)

        Raises:
            OutOfRange: начальные параметры вне [0, SCALE]
            InvariantViolation: начальный дисконт на горизонте >= 100%
        """
        if seconds_per_year <= 0:
            raise ValueError(f"seconds_per_year must be positive, got {seconds_per_year}")

        self.instrument = instrument
        self.seconds_per_year = seconds_per_year
        self.safety_horizon = safety_horizon
        self._audit_sink = audit_sink or NullAuditSink()
        self._lock = threading.RLock()

        if not self._in_range(slope, intercept):
            raise OutOfRange(
                f"Initial parameters out of range [0, {SCALE}]: "
                f"slope={slope!r}, intercept={intercept!r}"
            )

        start_ts = instrument.issuance_ts if last_update_ts is None else last_update_ts
        safety_discount = self._safety_discount(slope, intercept, start_ts)
        if not is_discount_safe(safety_discount):
            raise InvariantViolation(
                f"Initial parameters give discount {safety_discount} >= {SCALE} (100%) "
                f"at {self.safety_horizon.value} horizon: slope={slope}, intercept={intercept}"
            )

        self._state = GovernanceState(
            parameters=DiscountParameters(slope=slope, intercept=intercept),
            limits=limits or UpdateLimits(),
            last_update_ts=start_ts,
        )

    # -------------------------------------------------------------------------
    # READ
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GovernanceState:
        """Консистентный снапшот (одно чтение ссылки)."""
        return self._state

    @property
    def parameters(self) -> DiscountParameters:
        return self._state.parameters

    @property
    def limits(self) -> UpdateLimits:
        return self._state.limits

    @property
    def last_update_ts(self) -> int:
        return self._state.last_update_ts

    def next_update_allowed_at(self) -> int:
        """Первый timestamp, в который пройдёт rate limit."""
        state = self._state
        return state.last_update_ts + state.limits.min_update_interval_sec + 1

    # -------------------------------------------------------------------------
    # GOVERNED UPDATES
    # -------------------------------------------------------------------------

    def propose_update(self, new_slope: int, new_intercept: int, now: int) -> ParameterUpdateResult:
        """Предложение новых (slope, intercept).

        Args:
            new_slope: новый slope (fixed-point)
            new_intercept: новый intercept (fixed-point)
            now: текущее время (UTC, секунды)

        Returns:
            ParameterUpdateResult: accepted=True и новые параметры,
            либо accepted=False с reject_reason первой нарушенной проверки
        """
        with self._lock:
            state = self._state
            result = self._evaluate(state, new_slope, new_intercept, now)

            if not result.accepted:
                logger.warning(
                    "Parameter update rejected (%s): %s",
                    result.reject_reason.value if result.reject_reason else "",
                    result.details,
                )
                return result

            self._state = GovernanceState(
                parameters=result.parameters,
                limits=state.limits,
                last_update_ts=now,
            )

        logger.info(
            "Discount parameters updated: slope %d -> %d, intercept %d -> %d at ts=%d",
            result.previous.slope,
            result.parameters.slope,
            result.previous.intercept,
            result.parameters.intercept,
            now,
        )
        emit_observation(
            self._audit_sink,
            ParameterChanged(
                ts=now,
                old_slope=result.previous.slope,
                old_intercept=result.previous.intercept,
                slope=result.parameters.slope,
                intercept=result.parameters.intercept,
            ),
        )
        return result

    def propose_update_from_target_yield(
        self, expected_annual_yield: int, now: int
    ) -> ParameterUpdateResult:
        """Обновление slope по целевой годовой доходности, intercept = 0.

        slope = y * SCALE // (SCALE + y), где 0 < y <= 10 * SCALE.
        Доходность вне диапазона отвергается (OUT_OF_RANGE) до делегирования
        в propose_update.
        """
        try:
            new_slope = slope_from_target_yield(expected_annual_yield)
        except OutOfRange as e:
            current = self._state.parameters
            logger.warning("Target yield update rejected (OUT_OF_RANGE): %s", e)
            return ParameterUpdateResult(
                accepted=False,
                reject_reason=RejectionKind.OUT_OF_RANGE,
                proposed_slope=None,
                proposed_intercept=None,
                previous=current,
                parameters=current,
                safety_discount=None,
                details=str(e),
            )

        return self.propose_update(new_slope, 0, now)

    def set_limits(
        self,
        min_update_interval_sec: int,
        max_slope_delta: int,
        max_intercept_delta: int,
        now: int,
    ) -> LimitsUpdateResult:
        """Атомарная замена UpdateLimits (без rate limit).

        0 в max_slope_delta / max_intercept_delta снимает ограничение.
        Отрицательные или нецелые значения → OUT_OF_RANGE.
        """
        with self._lock:
            state = self._state

            if not all(
                is_uint(v) for v in (min_update_interval_sec, max_slope_delta, max_intercept_delta)
            ):
                details = (
                    f"Limits must be non-negative integers: interval={min_update_interval_sec!r}, "
                    f"max_slope_delta={max_slope_delta!r}, max_intercept_delta={max_intercept_delta!r}"
                )
                logger.warning("Limits update rejected (OUT_OF_RANGE): %s", details)
                return LimitsUpdateResult(
                    accepted=False,
                    reject_reason=RejectionKind.OUT_OF_RANGE,
                    previous=state.limits,
                    limits=state.limits,
                    details=details,
                )

            new_limits = UpdateLimits(
                min_update_interval_sec=min_update_interval_sec,
                max_slope_delta=max_slope_delta,
                max_intercept_delta=max_intercept_delta,
            )
            self._state = GovernanceState(
                parameters=state.parameters,
                limits=new_limits,
                last_update_ts=state.last_update_ts,
            )

        previous = state.limits
        logger.info(
            "Update limits replaced: interval %d -> %d, max_slope_delta %d -> %d, "
            "max_intercept_delta %d -> %d",
            previous.min_update_interval_sec,
            new_limits.min_update_interval_sec,
            previous.max_slope_delta,
            new_limits.max_slope_delta,
            previous.max_intercept_delta,
            new_limits.max_intercept_delta,
        )
        emit_observation(
            self._audit_sink,
            LimitsChanged(
                ts=now,
                old_min_update_interval_sec=previous.min_update_interval_sec,
                old_max_slope_delta=previous.max_slope_delta,
                old_max_intercept_delta=previous.max_intercept_delta,
                min_update_interval_sec=new_limits.min_update_interval_sec,
                max_slope_delta=new_limits.max_slope_delta,
                max_intercept_delta=new_limits.max_intercept_delta,
            ),
        )
        return LimitsUpdateResult(
            accepted=True,
            reject_reason=None,
            previous=previous,
            limits=new_limits,
            details=f"PASS: limits replaced at ts={now}",
        )

    # -------------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------------

    def _evaluate(
        self, state: GovernanceState, new_slope: int, new_intercept: int, now: int
    ) -> ParameterUpdateResult:
        """Проверки 1-4 против pre-commit состояния, без мутации."""
        current = state.parameters
        limits = state.limits

        def reject(reason: RejectionKind, details: str, safety_discount: Optional[int] = None):
            return ParameterUpdateResult(
                accepted=False,
                reject_reason=reason,
                proposed_slope=new_slope,
                proposed_intercept=new_intercept,
                previous=current,
                parameters=current,
                safety_discount=safety_discount,
                details=details,
            )

        # 1. Rate limit (строгое >)
        if now <= state.last_update_ts + limits.min_update_interval_sec:
            return reject(
                RejectionKind.RATE_LIMITED,
                f"Update interval not elapsed: now={now}, last_update_ts={state.last_update_ts}, "
                f"min_update_interval_sec={limits.min_update_interval_sec}",
            )

        # 2. Range
        if not self._in_range(new_slope, new_intercept):
            return reject(
                RejectionKind.OUT_OF_RANGE,
                f"Parameters out of range [0, {SCALE}]: slope={new_slope!r}, intercept={new_intercept!r}",
            )

        # 3. Magnitude
        if limits.slope_delta_bounded and abs_diff(new_slope, current.slope) > limits.max_slope_delta:
            return reject(
                RejectionKind.DELTA_EXCEEDED,
                f"Slope change exceeds limit: |{new_slope} - {current.slope}| > {limits.max_slope_delta}",
            )

        if (
            limits.intercept_delta_bounded
            and abs_diff(new_intercept, current.intercept) > limits.max_intercept_delta
        ):
            return reject(
                RejectionKind.DELTA_EXCEEDED,
                f"Intercept change exceeds limit: |{new_intercept} - {current.intercept}| "
                f"> {limits.max_intercept_delta}",
            )

        # 4. Safety (строго < 100%)
        safety_discount = self._safety_discount(new_slope, new_intercept, now)
        if not is_discount_safe(safety_discount):
            return reject(
                RejectionKind.INVARIANT_VIOLATION,
                f"Discount {safety_discount} >= {SCALE} (100%) at {self.safety_horizon.value} horizon",
                safety_discount,
            )

        return ParameterUpdateResult(
            accepted=True,
            reject_reason=None,
            proposed_slope=new_slope,
            proposed_intercept=new_intercept,
            previous=current,
            parameters=DiscountParameters(slope=new_slope, intercept=new_intercept),
            safety_discount=safety_discount,
            details=f"PASS: slope={new_slope}, intercept={new_intercept}, safety_discount={safety_discount}",
        )

    def _safety_discount(self, slope: int, intercept: int, now: int) -> int:
        """Дисконт на горизонте безопасности."""
        if self.safety_horizon == SafetyHorizon.ISSUANCE:
            horizon_sec = self.instrument.lifetime_sec
        else:
            horizon_sec = self.instrument.time_to_maturity(now)

        return max_discount_over_horizon(slope, intercept, horizon_sec, self.seconds_per_year)

    @staticmethod
    def _in_range(slope: int, intercept: int) -> bool:
        return is_uint(slope) and is_uint(intercept) and slope <= SCALE and intercept <= SCALE
