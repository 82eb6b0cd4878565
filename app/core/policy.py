"""
Access policy: which role may do what to which ticket.

Pure functions of (role, relationship to the ticket). Anything not listed in
``POLICY`` is denied. List scoping is returned as a SQL predicate so it is
applied in the query, never by filtering rows afterwards.
"""
from enum import Enum
from typing import Optional

from sqlalchemy import true
from sqlalchemy.sql.elements import ColumnElement

from app.core.errors import Forbidden
from app.models.enums import REQUESTER_ROLES, Role
from app.models.ticket import Ticket
from app.services.directory import Identity


class Action(str, Enum):
    CREATE_TICKET = "create_ticket"
    LIST_TICKETS = "list_tickets"
    READ_TICKET = "read_ticket"
    DELETE_TICKET = "delete_ticket"
    MUTATE_TICKET = "mutate_ticket"   # status / priority / assignee
    ADD_UPDATE = "add_update"
    READ_AGGREGATES = "read_aggregates"  # user directory and statistics


class Scope(str, Enum):
    ANY = "any"   # every ticket
    OWN = "own"   # only tickets the caller created


_REQUESTER = {
    Action.CREATE_TICKET: Scope.ANY,
    Action.LIST_TICKETS: Scope.OWN,
    Action.READ_TICKET: Scope.OWN,
    Action.DELETE_TICKET: Scope.OWN,
    Action.ADD_UPDATE: Scope.OWN,
}

_COORDINATOR = {
    Action.LIST_TICKETS: Scope.ANY,
    Action.READ_TICKET: Scope.ANY,
    Action.MUTATE_TICKET: Scope.ANY,
    Action.ADD_UPDATE: Scope.ANY,
    Action.READ_AGGREGATES: Scope.ANY,
}

POLICY = {role: _REQUESTER for role in REQUESTER_ROLES}
POLICY[Role.IT_COORDINATOR] = _COORDINATOR


def scope_for(role: Role, action: Action) -> Optional[Scope]:
    return POLICY.get(role, {}).get(action)


def is_allowed(caller: Identity, action: Action, creator_id: Optional[int] = None) -> bool:
    """
    Decide a single action.

    ``creator_id`` is the target ticket's creator; pass None for actions
    without a target (create, aggregates).
    """
    scope = scope_for(caller.role, action)
    if scope is None:
        return False
    if scope is Scope.ANY:
        return True
    return creator_id is not None and creator_id == caller.id


def authorize(caller: Identity, action: Action, creator_id: Optional[int] = None) -> None:
    if not is_allowed(caller, action, creator_id):
        raise Forbidden(_DENIAL_MESSAGES.get(action, "Insufficient permissions"))


def visibility(caller: Identity, action: Action = Action.LIST_TICKETS) -> ColumnElement:
    """
    SQL predicate selecting the tickets ``caller`` may see for ``action``.

    Raises Forbidden when the role has no access at all.
    """
    scope = scope_for(caller.role, action)
    if scope is None:
        raise Forbidden(_DENIAL_MESSAGES.get(action, "Insufficient permissions"))
    if scope is Scope.ANY:
        return true()
    return Ticket.created_by == caller.id


_DENIAL_MESSAGES = {
    Action.CREATE_TICKET: "IT coordinators cannot create tickets",
    Action.DELETE_TICKET: "You can only delete your own tickets",
    Action.MUTATE_TICKET: "Only IT coordinators can change status, priority or assignment",
    Action.READ_AGGREGATES: "Insufficient permissions",
}
