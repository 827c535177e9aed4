"""Unit tests for role capability checks"""

import pytest
from layaway_gateway.domain.authorization import can, require
from layaway_gateway.domain.exceptions import PermissionDeniedError
from layaway_gateway.domain.models import Actor, Role


def test_employee_can_collect_payments_but_not_open_plans():
    employee = Actor(id="e1", role=Role.EMPLOYEE)

    assert can(employee, "payments:record")
    assert can(employee, "plans:read")
    assert not can(employee, "plans:create")
    assert not can(employee, "plans:delete")


@pytest.mark.parametrize("role", [Role.ADMIN, Role.SUPER_ADMIN])
def test_admins_can_manage_plans(role):
    actor = Actor(id="a1", role=role)
    for capability in ("plans:create", "plans:cancel", "plans:delete", "plans:sweep"):
        require(actor, capability)


def test_require_raises_permission_denied():
    with pytest.raises(PermissionDeniedError) as exc_info:
        require(Actor(id="e1", role=Role.EMPLOYEE), "plans:cancel")
    assert exc_info.value.kind == "permission_denied"


def test_unknown_capability_denied():
    assert not can(Actor(id="a1", role=Role.SUPER_ADMIN), "users:delete")
