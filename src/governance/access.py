"""
Access Gateway — проверка capabilities вызывающего

Ядро только спрашивает "есть ли у principal capability C?" и не знает,
как хранятся роли. Любой компонент с методом has_capability подходит.

InMemoryAccessGateway: reference реализация с ролевой моделью:
- manager: обновляет параметры дисконта (единственный principal)
- parameter-admin: меняет лимиты и назначает manager
"""

import logging
import threading
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol, Set, runtime_checkable

from src.audit.sinks import AuditSink, NullAuditSink, emit_observation
from src.core.domain.observations import CapabilityChanged
from src.core.errors import OutOfRange, Unauthorized

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """Абстрактные разрешения, проверяемые через access gateway."""

    MANAGER = "manager"
    PARAMETER_ADMIN = "parameter-admin"


@runtime_checkable
class AccessGateway(Protocol):
    """Синхронная проверка capability без побочных эффектов."""

    def has_capability(self, principal: str, capability: Capability) -> bool: ...


class InMemoryAccessGateway:
    """Реестр capabilities в памяти.

    grant/revoke: bootstrap-операции хоста (без авторизации).
    set_manager: ротация manager, доступна только parameter-admin;
    у предыдущего manager capability отзывается.
    """

    def __init__(
        self,
        grants: Optional[Dict[Capability, Iterable[str]]] = None,
        audit_sink: Optional[AuditSink] = None,
    ):
        self._lock = threading.RLock()
        self._audit_sink = audit_sink or NullAuditSink()
        self._holders: Dict[Capability, Set[str]] = {c: set() for c in Capability}

        for capability, principals in (grants or {}).items():
            for principal in principals:
                self._validate_principal(principal)
                self._holders[Capability(capability)].add(principal)

    def has_capability(self, principal: str, capability: Capability) -> bool:
        return principal in self._holders.get(Capability(capability), set())

    def holders(self, capability: Capability) -> frozenset[str]:
        return frozenset(self._holders[Capability(capability)])

    def grant(self, principal: str, capability: Capability) -> None:
        self._validate_principal(principal)
        capability = Capability(capability)
        with self._lock:
            if principal in self._holders[capability]:
                return
            self._holders[capability].add(principal)
        logger.info("Capability %s granted to %s", capability.value, principal)
        emit_observation(
            self._audit_sink,
            CapabilityChanged(principal=principal, capability=capability.value, granted=True),
        )

    def revoke(self, principal: str, capability: Capability) -> None:
        capability = Capability(capability)
        with self._lock:
            if principal not in self._holders[capability]:
                return
            self._holders[capability].discard(principal)
        logger.info("Capability %s revoked from %s", capability.value, principal)
        emit_observation(
            self._audit_sink,
            CapabilityChanged(principal=principal, capability=capability.value, granted=False),
        )

    def set_manager(self, caller: str, new_manager: str) -> None:
        """Назначение нового manager (заменяет всех текущих).

        Raises:
            Unauthorized: caller не parameter-admin
            OutOfRange: пустой principal
        """
        if not self.has_capability(caller, Capability.PARAMETER_ADMIN):
            logger.warning("set_manager rejected: %s is not parameter-admin", caller)
            raise Unauthorized(f"caller {caller!r} lacks capability {Capability.PARAMETER_ADMIN.value}")

        self._validate_principal(new_manager)

        with self._lock:
            previous = set(self._holders[Capability.MANAGER])
            for principal in previous - {new_manager}:
                self.revoke(principal, Capability.MANAGER)
            self.grant(new_manager, Capability.MANAGER)

    @staticmethod
    def _validate_principal(principal: str) -> None:
        if not isinstance(principal, str) or not principal.strip():
            raise OutOfRange(f"invalid principal: {principal!r}")
