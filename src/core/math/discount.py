"""
Discount Model — линейная модель дисконта principal token

Модуль содержит чистые функции без состояния:
- Конверсия time-to-maturity (секунды) в долю года (fixed-point)
- Линейный дисконт: discount = slope * years + intercept
- Применение дисконта к цене underlying
- Конверсия целевой годовой доходности в slope

ФОРМУЛЫ (все деления floor division, SCALE = 1e18):
    years    = time_to_maturity_sec * SCALE // seconds_per_year
    discount = slope * years // SCALE + intercept
    price    = underlying_price * (SCALE - discount) // SCALE
    slope    = yield * SCALE // (SCALE + yield)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. discount_fraction НЕ clamp'ит результат: политика (валидация или
   assert при live pricing) принадлежит вызывающей стороне
2. При time_to_maturity == 0 дисконт не определён, вызывающая сторона
   обязана обработать maturity до вызова
3. При slope >= 0 дисконт монотонно не убывает по time_to_maturity
"""

from typing import Final

from src.core.errors import InvariantViolation, OutOfRange
from src.core.math.fixed_point import (
    SCALE,
    SECONDS_PER_YEAR,
    mul_div_down,
    validate_uint,
)

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Максимальная целевая годовая доходность (1000%)
MAX_TARGET_YIELD: Final[int] = 10 * SCALE


# =============================================================================
# TIME TO MATURITY
# =============================================================================


def years_to_maturity(
    time_to_maturity_sec: int,
    seconds_per_year: int = SECONDS_PER_YEAR,
) -> int:
    """
    Конверсия секунд до погашения в долю года (fixed-point).

    Args:
        time_to_maturity_sec: Секунд до погашения (>= 0)
        seconds_per_year: Секунд в году (> 0)

    Returns:
        Доля года, SCALE = 1 год

    Examples:
        >>> years_to_maturity(SECONDS_PER_YEAR)
        1000000000000000000
        >>> years_to_maturity(SECONDS_PER_YEAR // 2)
        500000000000000000
    """
    validate_uint(time_to_maturity_sec, "time_to_maturity_sec")

    if seconds_per_year <= 0:
        raise ValueError(f"seconds_per_year must be positive, got {seconds_per_year}")

    return mul_div_down(time_to_maturity_sec, SCALE, seconds_per_year)


# =============================================================================
# DISCOUNT
# =============================================================================


def discount_fraction(
    slope: int,
    intercept: int,
    time_to_maturity_sec: int,
    seconds_per_year: int = SECONDS_PER_YEAR,
) -> int:
    """
    Линейный дисконт для заданного времени до погашения.

    discount = slope * years // SCALE + intercept

    Результат НЕ ограничивается сверху: вызывающая сторона обязана
    проверить discount <= SCALE (валидация параметров или assert
    при live pricing).

    Args:
        slope: Наклон, доля в год (fixed-point, >= 0)
        intercept: Постоянный дисконт (fixed-point, >= 0)
        time_to_maturity_sec: Секунд до погашения (> 0)
        seconds_per_year: Секунд в году

    Returns:
        Дисконт (fixed-point, SCALE = 100%)

    Raises:
        ValueError: если time_to_maturity_sec == 0 (инструмент погашен)
            или аргументы отрицательные

    Examples:
        >>> discount_fraction(5 * 10**17, 0, SECONDS_PER_YEAR)
        500000000000000000
        >>> discount_fraction(2 * 10**17, 10**17, SECONDS_PER_YEAR // 2)
        200000000000000000
    """
    validate_uint(slope, "slope")
    validate_uint(intercept, "intercept")

    if time_to_maturity_sec == 0:
        raise ValueError("discount is undefined at maturity (time_to_maturity_sec == 0)")

    years = years_to_maturity(time_to_maturity_sec, seconds_per_year)
    return mul_div_down(slope, years, SCALE) + intercept


def is_discount_safe(discount: int) -> bool:
    """
    Проверка безопасности дисконта: строго меньше 100%.

    Дисконт ровно 100% даёт нулевую цену и трактуется как отказ безопасности.
    """
    return 0 <= discount < SCALE


def apply_discount(underlying_price: int, discount: int) -> int:
    """
    Применение дисконта к цене underlying.

    price = underlying_price * (SCALE - discount) // SCALE

    Args:
        underlying_price: Цена underlying (fixed-point, масштаб feed)
        discount: Дисконт (fixed-point)

    Returns:
        Дисконтированная цена

    Raises:
        InvariantViolation: если discount > SCALE (ошибка governance)
    """
    validate_uint(underlying_price, "underlying_price")
    validate_uint(discount, "discount")

    if discount > SCALE:
        raise InvariantViolation(
            f"Discount {discount} exceeds {SCALE} (100%). "
            f"Parameters must never allow a negative price."
        )

    return mul_div_down(underlying_price, SCALE - discount, SCALE)


def max_discount_over_horizon(
    slope: int,
    intercept: int,
    horizon_sec: int,
    seconds_per_year: int = SECONDS_PER_YEAR,
) -> int:
    """
    Максимальный дисконт на интервале time_to_maturity в (0, horizon_sec].

    При slope >= 0 дисконт монотонен по времени, максимум достигается
    на границе горизонта. При горизонте 0 (инструмент погашен) остаётся
    только intercept.
    """
    if horizon_sec == 0:
        validate_uint(intercept, "intercept")
        return intercept

    return discount_fraction(slope, intercept, horizon_sec, seconds_per_year)


# =============================================================================
# TARGET YIELD
# =============================================================================


def slope_from_target_yield(expected_annual_yield: int) -> int:
    """
    Конверсия ожидаемой годовой доходности в slope.

    slope = y * SCALE // (SCALE + y)

    PT, купленный с дисконтом d за год до погашения, приносит доходность
    y = d / (1 - d), откуда d = y / (1 + y).

    Args:
        expected_annual_yield: Годовая доходность (fixed-point, 0 < y <= 10 * SCALE)

    Returns:
        Slope (fixed-point)

    Raises:
        OutOfRange: если доходность вне (0, 10 * SCALE]

    Examples:
        >>> slope_from_target_yield(10**17)  # 10% → ~9.09%
        90909090909090909
    """
    if (
        not isinstance(expected_annual_yield, int)
        or isinstance(expected_annual_yield, bool)
        or expected_annual_yield <= 0
        or expected_annual_yield > MAX_TARGET_YIELD
    ):
        raise OutOfRange(
            f"expected_annual_yield must be in (0, {MAX_TARGET_YIELD}], "
            f"got {expected_annual_yield!r}"
        )

    return mul_div_down(expected_annual_yield, SCALE, SCALE + expected_annual_yield)
