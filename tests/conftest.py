from __future__ import annotations

import pytest

from shiftwork.core.context import RequestingUser
from shiftwork.core.enums import Role
from tests.fakes import build_world


@pytest.fixture
def world():
    return build_world()


@pytest.fixture
def admin():
    return RequestingUser(user_id=1, role=Role.ADMIN)


@pytest.fixture
def manager():
    return RequestingUser(user_id=2, role=Role.MANAGER, branch_id=1)


@pytest.fixture
def other_manager():
    return RequestingUser(user_id=6, role=Role.MANAGER, branch_id=2)


@pytest.fixture
def an():
    return RequestingUser(user_id=3, role=Role.EMPLOYEE, branch_id=1)


@pytest.fixture
def binh():
    return RequestingUser(user_id=4, role=Role.EMPLOYEE, branch_id=1)
