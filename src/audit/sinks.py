"""
Audit Sinks — приёмники событий мутации состояния оракула

Audit sink является внешним коллаборатором: fire-and-forget, результат ядром
не используется. Ошибка sink'а не должна откатывать уже выполненный commit,
поэтому emit_observation логирует и проглатывает только ошибки sink'а.

Реализации:
- InMemoryAuditSink: список событий, проверка по контракту observation
- LoggingAuditSink: зеркалирование событий в logging
- FanOutAuditSink: рассылка в несколько sink'ов
"""

import logging
from typing import List, Protocol, Tuple, runtime_checkable

from jsonschema import ValidationError

from src.core.contracts import ObservationValidator
from src.core.domain.observations import Observation, ObservationType

logger = logging.getLogger(__name__)


@runtime_checkable
class AuditSink(Protocol):
    """Приёмник структурированных событий."""

    def record(self, observation: Observation) -> None: ...


class NullAuditSink:
    """Sink, отбрасывающий все события."""

    def record(self, observation: Observation) -> None:
        return None


class InMemoryAuditSink:
    """
    Sink, накапливающий события в памяти.

    При validate=True каждое событие проверяется по контракту observation
    перед сохранением. Нарушение пробрасывается как ValidationError, а
    событие с текстом нарушения попадает в rejected: emit_observation
    проглатывает ошибки sink'а, и без rejected такое событие было бы
    видно только как отсутствующее.
    """

    def __init__(self, validate: bool = True):
        self._validator = ObservationValidator() if validate else None
        self.observations: List[Observation] = []
        self.rejected: List[Tuple[Observation, str]] = []

    def record(self, observation: Observation) -> None:
        if self._validator is not None:
            violations = self._validator.violations(observation)
            if violations:
                message = "; ".join(violations)
                self.rejected.append((observation, message))
                raise ValidationError(message)
        self.observations.append(observation)

    def of_type(self, observation_type: ObservationType) -> List[Observation]:
        """События заданного типа в порядке поступления."""
        return [o for o in self.observations if o.type == observation_type]

    def clear(self) -> None:
        self.observations.clear()
        self.rejected.clear()


class LoggingAuditSink:
    """Sink, пишущий события в logger как структурированный extra."""

    def __init__(self, audit_logger: logging.Logger | None = None, level: int = logging.INFO):
        self._logger = audit_logger or logging.getLogger("pt_oracle.audit")
        self._level = level

    def record(self, observation: Observation) -> None:
        payload = observation.model_dump(mode="json")
        self._logger.log(
            self._level,
            "%s %s",
            payload["type"],
            {k: v for k, v in payload.items() if k != "type"},
            extra={"observation": payload},
        )


class FanOutAuditSink:
    """Sink, пересылающий каждое событие во все вложенные sink'и."""

    def __init__(self, *sinks: AuditSink):
        self._sinks = sinks

    def record(self, observation: Observation) -> None:
        for sink in self._sinks:
            sink.record(observation)


def emit_observation(sink: AuditSink, observation: Observation) -> None:
    """
    Отправка события в sink (fire-and-forget).

    Вызывается только после commit: сбой sink'а логируется,
    но не отменяет мутацию и не пробрасывается вызывающему.
    """
    try:
        sink.record(observation)
    except Exception:
        logger.exception("Audit sink failed to record %s", type(observation).__name__)
