"""
Errors — типизированные ошибки оракула

Каждая ошибка локальна для вызова, который её вызвал: валидация всегда
предшествует commit, поэтому ни одна ошибка не портит сохранённое состояние.
Внутренних retry нет: вызывающая сторона сама решает, повторять ли запрос.
"""

from enum import Enum


class RejectionKind(str, Enum):
    """Вид отказа (используется и в exceptions, и в tagged results)."""

    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    DELTA_EXCEEDED = "DELTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMITED"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    UNAUTHORIZED = "UNAUTHORIZED"


class OracleError(Exception):
    """Базовая ошибка оракула."""

    kind: RejectionKind


class UpstreamUnavailable(OracleError):
    """Feed или maturity source недоступен либо вернул невалидное значение."""

    kind = RejectionKind.UPSTREAM_UNAVAILABLE


class OutOfRange(OracleError):
    """Параметр или доходность вне абсолютных границ."""

    kind = RejectionKind.OUT_OF_RANGE


class DeltaExceeded(OracleError):
    """Изменение параметра слишком велико относительно текущего значения."""

    kind = RejectionKind.DELTA_EXCEEDED


class RateLimited(OracleError):
    """Обновление до истечения минимального интервала."""

    kind = RejectionKind.RATE_LIMITED


class InvariantViolation(OracleError):
    """
    Дисконт достиг или превысил 100%.

    Всегда фатально для конкретного вызова, никогда не clamp'ится молча:
    нулевая цена трактуется как отказ безопасности.
    """

    kind = RejectionKind.INVARIANT_VIOLATION


class Unauthorized(OracleError):
    """У вызывающего нет требуемой capability."""

    kind = RejectionKind.UNAUTHORIZED


_ERRORS_BY_KIND: dict[RejectionKind, type[OracleError]] = {
    RejectionKind.UPSTREAM_UNAVAILABLE: UpstreamUnavailable,
    RejectionKind.OUT_OF_RANGE: OutOfRange,
    RejectionKind.DELTA_EXCEEDED: DeltaExceeded,
    RejectionKind.RATE_LIMITED: RateLimited,
    RejectionKind.INVARIANT_VIOLATION: InvariantViolation,
    RejectionKind.UNAUTHORIZED: Unauthorized,
}


def error_for(kind: RejectionKind, message: str) -> OracleError:
    """Создание exception, соответствующего виду отказа."""
    return _ERRORS_BY_KIND[kind](message)
