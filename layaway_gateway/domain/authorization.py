"""Capability checks for installment operations"""

from typing import Dict, FrozenSet

from layaway_gateway.domain.exceptions import PermissionDeniedError
from layaway_gateway.domain.models import Actor, Role

# Employees may collect payments but not open, cancel or purge layaway sales
CAPABILITIES: Dict[str, FrozenSet[Role]] = {
    "plans:read": frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.EMPLOYEE}),
    "plans:create": frozenset({Role.SUPER_ADMIN, Role.ADMIN}),
    "plans:cancel": frozenset({Role.SUPER_ADMIN, Role.ADMIN}),
    "plans:delete": frozenset({Role.SUPER_ADMIN, Role.ADMIN}),
    "plans:sweep": frozenset({Role.SUPER_ADMIN, Role.ADMIN}),
    "payments:record": frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.EMPLOYEE}),
}


def can(actor: Actor, capability: str) -> bool:
    return Role(actor.role) in CAPABILITIES.get(capability, frozenset())


def require(actor: Actor, capability: str) -> None:
    """Raise PermissionDeniedError unless the actor's role grants the capability"""
    if not can(actor, capability):
        raise PermissionDeniedError(f"Role '{Role(actor.role).value}' is not allowed to {capability}")
