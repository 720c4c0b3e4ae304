"""
Fixed-Point Arithmetic — целочисленные примитивы с масштабом 1e18

Все цены, доли и коэффициенты дисконта хранятся как целые числа
с фиксированной точкой (SCALE = 10**18 = 1.0). Float в расчётах
цены не используется.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все деления: floor division (округление вниз, детерминированно)
2. Отрицательные значения и bool отвергаются валидаторами
3. Все операции детерминированы и воспроизводимы
"""

from typing import Final

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Масштаб fixed-point: 1e18 = 100%
SCALE: Final[int] = 10**18

# Секунд в сутках
SECONDS_PER_DAY: Final[int] = 24 * 60 * 60

# Секунд в году (365 дней, без учёта високосных)
SECONDS_PER_YEAR: Final[int] = 365 * SECONDS_PER_DAY


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_uint(value: object) -> bool:
    """
    Проверка, что значение является неотрицательным int (bool не считается int).

    Examples:
        >>> is_uint(0)
        True
        >>> is_uint(-1)
        False
        >>> is_uint(True)
        False
    """
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_uint(value: int, name: str) -> None:
    """
    Проверка, что value является неотрицательным целым.

    Raises:
        ValueError: если value не int или отрицательный
    """
    if not is_uint(value):
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")


# =============================================================================
# АРИФМЕТИКА
# =============================================================================


def mul_div_down(a: int, b: int, denominator: int) -> int:
    """
    Вычисление floor(a * b / denominator) без промежуточного округления.

    Args:
        a: Множитель (>= 0)
        b: Множитель (>= 0)
        denominator: Делитель (> 0)

    Returns:
        floor(a * b / denominator)

    Raises:
        ValueError: если denominator <= 0

    Examples:
        >>> mul_div_down(10**18, 5 * 10**17, 10**18)
        500000000000000000
        >>> mul_div_down(7, 1, 2)
        3
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")

    return a * b // denominator


def abs_diff(a: int, b: int) -> int:
    """Абсолютная разница двух целых."""
    return a - b if a >= b else b - a
