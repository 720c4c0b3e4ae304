"""
Oracle State — модели состояния оракула

Immutable Pydantic модели: параметры дисконта, лимиты обновлений,
кэш цены и полный снапшот состояния оракула.
Полная совместимость с JSON Schema (contracts/schema/oracle_state.json).

Все значения: целые fixed-point (SCALE = 1e18) или Unix timestamp (секунды).
Мутация состояния = замена модели целиком (одно присваивание ссылки),
поэтому читатели никогда не видят частично применённое обновление.
"""

from pydantic import BaseModel, Field, model_validator

from src.core.math.fixed_point import SCALE, SECONDS_PER_DAY

# =============================================================================
# CONSTANTS
# =============================================================================

# Sentinel "без ограничения" для max_slope_delta / max_intercept_delta
UNBOUNDED_DELTA: int = 0

# Минимальный интервал между обновлениями параметров по умолчанию (24 часа)
DEFAULT_MIN_UPDATE_INTERVAL_SEC: int = SECONDS_PER_DAY


# =============================================================================
# INSTRUMENT
# =============================================================================


class Instrument(BaseModel):
    """
    Principal token с фиксированной датой погашения.

    maturity_ts читается из maturity source один раз при инициализации.
    issuance_ts: момент инициализации оракула (начало горизонта безопасности).
    """

    maturity_ts: int = Field(..., ge=0, description="Timestamp погашения (UTC, секунды)")
    issuance_ts: int = Field(..., ge=0, description="Timestamp инициализации оракула (UTC, секунды)")

    model_config = {"frozen": True}

    def time_to_maturity(self, now: int) -> int:
        """Секунд до погашения (0 если погашен)."""
        return max(self.maturity_ts - now, 0)

    def is_matured(self, now: int) -> bool:
        """True если now >= maturity_ts."""
        return now >= self.maturity_ts

    @property
    def lifetime_sec(self) -> int:
        """Полная длительность от инициализации до погашения."""
        return max(self.maturity_ts - self.issuance_ts, 0)


# =============================================================================
# DISCOUNT PARAMETERS
# =============================================================================


class DiscountParameters(BaseModel):
    """
    Коэффициенты линейной модели дисконта.

    slope: дисконт на год до погашения; intercept: постоянный floor дисконт.
    Ограничение discount < 100% на горизонте безопасности проверяется
    в ParameterStore (зависит от времени).
    """

    slope: int = Field(..., ge=0, le=SCALE, description="Наклон, доля в год (fixed-point)")
    intercept: int = Field(..., ge=0, le=SCALE, description="Постоянный дисконт (fixed-point)")

    model_config = {"frozen": True, "strict": True}


# =============================================================================
# UPDATE LIMITS
# =============================================================================


class UpdateLimits(BaseModel):
    """
    Ограничения на обновление параметров дисконта.

    0 в max_slope_delta / max_intercept_delta означает "без ограничения".
    """

    min_update_interval_sec: int = Field(
        default=DEFAULT_MIN_UPDATE_INTERVAL_SEC,
        ge=0,
        description="Минимальный интервал между обновлениями (секунды)",
    )
    max_slope_delta: int = Field(
        default=UNBOUNDED_DELTA, ge=0, description="Максимальное |Δslope| (0 = без ограничения)"
    )
    max_intercept_delta: int = Field(
        default=UNBOUNDED_DELTA, ge=0, description="Максимальное |Δintercept| (0 = без ограничения)"
    )

    model_config = {"frozen": True, "strict": True}

    @property
    def slope_delta_bounded(self) -> bool:
        return self.max_slope_delta != UNBOUNDED_DELTA

    @property
    def intercept_delta_bounded(self) -> bool:
        return self.max_intercept_delta != UNBOUNDED_DELTA


# =============================================================================
# PRICE CACHE
# =============================================================================


class PriceCacheState(BaseModel):
    """
    Последняя вычисленная цена и timestamp её вычисления.

    updated_at is None означает пустой кэш.
    """

    price: int = Field(default=0, ge=0, description="Кэшированная цена (масштаб feed)")
    updated_at: int | None = Field(
        default=None, ge=0, description="Timestamp вычисления (UTC, секунды, nullable)"
    )

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return self.updated_at is None


# =============================================================================
# ORACLE STATE SNAPSHOT
# =============================================================================


class OracleState(BaseModel):
    """
    Полный снапшот состояния оракула.

    Используется хостом для durable persistence и для диагностики.
    """

    instrument: Instrument = Field(..., description="Инструмент")
    parameters: DiscountParameters = Field(..., description="Текущие параметры дисконта")
    limits: UpdateLimits = Field(..., description="Текущие лимиты обновлений")
    cache: PriceCacheState = Field(default_factory=PriceCacheState, description="Кэш цены")
    last_update_ts: int = Field(..., ge=0, description="Timestamp последнего обновления параметров")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_timestamps(self) -> "OracleState":
        if self.last_update_ts < self.instrument.issuance_ts:
            raise ValueError(
                f"last_update_ts ({self.last_update_ts}) precedes "
                f"issuance_ts ({self.instrument.issuance_ts})"
            )
        return self
