import pytest

from app.core import policy
from app.core.errors import Forbidden
from app.core.policy import Action
from app.models.enums import REQUESTER_ROLES, Role
from app.services.directory import Identity


def _identity(user_id: int, role: Role) -> Identity:
    return Identity(id=user_id, first_name="F", last_name="L", email=f"{user_id}@x.example", role=role)


STUDENT = _identity(1, Role.STUDENT)
TEACHER = _identity(2, Role.TEACHER)
COORDINATOR = _identity(3, Role.IT_COORDINATOR)


@pytest.mark.parametrize("caller", [STUDENT, TEACHER])
def test_requesters(caller):
    own, other = caller.id, 99

    assert policy.is_allowed(caller, Action.CREATE_TICKET)
    assert policy.is_allowed(caller, Action.READ_TICKET, own)
    assert not policy.is_allowed(caller, Action.READ_TICKET, other)
    assert policy.is_allowed(caller, Action.DELETE_TICKET, own)
    assert not policy.is_allowed(caller, Action.DELETE_TICKET, other)
    assert policy.is_allowed(caller, Action.ADD_UPDATE, own)
    assert not policy.is_allowed(caller, Action.ADD_UPDATE, other)
    assert not policy.is_allowed(caller, Action.MUTATE_TICKET, own)
    assert not policy.is_allowed(caller, Action.READ_AGGREGATES)


def test_coordinator():
    assert not policy.is_allowed(COORDINATOR, Action.CREATE_TICKET)
    assert policy.is_allowed(COORDINATOR, Action.READ_TICKET, 42)
    assert policy.is_allowed(COORDINATOR, Action.MUTATE_TICKET, 42)
    assert policy.is_allowed(COORDINATOR, Action.ADD_UPDATE, 42)
    assert policy.is_allowed(COORDINATOR, Action.READ_AGGREGATES)
    assert not policy.is_allowed(COORDINATOR, Action.DELETE_TICKET, COORDINATOR.id)


def test_owned_action_without_target_is_denied():
    assert not policy.is_allowed(STUDENT, Action.READ_TICKET, None)


def test_authorize_raises_forbidden():
    with pytest.raises(Forbidden):
        policy.authorize(STUDENT, Action.MUTATE_TICKET, STUDENT.id)
    with pytest.raises(Forbidden):
        policy.authorize(COORDINATOR, Action.CREATE_TICKET)

    policy.authorize(COORDINATOR, Action.MUTATE_TICKET, 7)


def test_visibility_predicate_shape():
    assert str(policy.visibility(COORDINATOR)) == "true"

    predicate = policy.visibility(STUDENT)
    compiled = predicate.compile(compile_kwargs={"literal_binds": True})
    assert str(compiled) == "tickets.created_by = 1"


def test_visibility_for_denied_action():
    with pytest.raises(Forbidden):
        policy.visibility(COORDINATOR, Action.CREATE_TICKET)


def test_every_role_has_a_table():
    assert set(policy.POLICY) == set(Role)
    for role in REQUESTER_ROLES:
        assert policy.scope_for(role, Action.CREATE_TICKET) is policy.Scope.ANY
    assert policy.scope_for(Role.IT_COORDINATOR, Action.DELETE_TICKET) is None
