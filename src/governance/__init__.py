"""Governance — governed протокол обновления параметров и авторизация."""

from .access import AccessGateway, Capability, InMemoryAccessGateway
from .gateway import GovernanceGateway
from .parameter_store import (
    GovernanceState,
    LimitsUpdateResult,
    ParameterStore,
    ParameterUpdateResult,
    SafetyHorizon,
)

__all__ = [
    "AccessGateway",
    "Capability",
    "InMemoryAccessGateway",
    "GovernanceGateway",
    "GovernanceState",
    "LimitsUpdateResult",
    "ParameterStore",
    "ParameterUpdateResult",
    "SafetyHorizon",
]
