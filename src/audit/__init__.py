"""Audit — приёмники событий мутации состояния оракула."""

from .sinks import (
    AuditSink,
    FanOutAuditSink,
    InMemoryAuditSink,
    LoggingAuditSink,
    NullAuditSink,
    emit_observation,
)

__all__ = [
    "AuditSink",
    "NullAuditSink",
    "InMemoryAuditSink",
    "LoggingAuditSink",
    "FanOutAuditSink",
    "emit_observation",
]
