"""
Ticket lifecycle: the only writer of tickets and updates.

Every mutation runs as one transaction through ``sequences.run_in_transaction``
and is checked against ``app.core.policy`` first.

Status machine::

    OPEN -> IN_PROGRESS -> RESOLVED -> CLOSED
    any state -> CLOSED
    CLOSED is terminal

Writing the current status again is accepted as a no-op (``updated_at`` still
advances); every other change is ``InvalidTransition``.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from app.core import policy
from app.core.errors import InvalidTransition, NotFound, ValidationError
from app.core.policy import Action
from app.models.enums import TicketCategory, TicketPriority, TicketStatus
from app.models.ticket import Ticket
from app.models.update import Update
from app.schemas.ticket import TicketUpdate
from app.services import directory, sequences
from app.services.directory import Identity
from app.services.sequences import run_in_transaction

logger = logging.getLogger(__name__)

E = TypeVar("E", TicketStatus, TicketPriority, TicketCategory)

TITLE_MAX = 200
DESCRIPTION_MAX = 2000
MESSAGE_MAX = 1000

TRANSITIONS = {
    TicketStatus.OPEN: {TicketStatus.IN_PROGRESS, TicketStatus.CLOSED},
    TicketStatus.IN_PROGRESS: {TicketStatus.RESOLVED, TicketStatus.CLOSED},
    TicketStatus.RESOLVED: {TicketStatus.CLOSED},
    TicketStatus.CLOSED: set(),
}

# fields a coordinator may change through update_fields
PATCHABLE_FIELDS = ("status", "assigned_to", "priority")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def can_transition(current: TicketStatus, target: TicketStatus) -> bool:
    return target == current or target in TRANSITIONS[current]


# --- input checks ---

def _text(field: str, value: Any, max_len: int, errors: List[Dict[str, str]]) -> Optional[str]:
    label = field.capitalize()
    if not isinstance(value, str) or not (1 <= len(value.strip()) <= max_len):
        errors.append({
            "field": field,
            "message": f"{label} is required and must be at most {max_len} characters",
        })
        return None
    return value.strip()


def _member(enum_cls: Type[E], field: str, value: Any, errors: List[Dict[str, str]]) -> Optional[E]:
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append({"field": field, "message": f"Valid {field} is required"})
        return None
    try:
        return enum_cls(value)
    except ValueError:
        errors.append({"field": field, "message": f"Valid {field} is required"})
        return None


def _raise_if(errors: List[Dict[str, str]]) -> None:
    if errors:
        raise ValidationError(errors)


# --- queries ---

def _ticket_query(db: Session):
    return db.query(Ticket).options(joinedload(Ticket.creator), joinedload(Ticket.assignee))


def _visible_ticket(db: Session, caller: Identity, ticket_id: int, action: Action) -> Ticket:
    ticket = (
        _ticket_query(db)
        .filter(Ticket.id == ticket_id)
        .filter(policy.visibility(caller, action))
        .first()
    )
    if ticket is None:
        raise NotFound("Ticket not found")
    return ticket


def _locked_ticket(db: Session, ticket_id: int, visible=None) -> Optional[Ticket]:
    query = db.query(Ticket).filter(Ticket.id == ticket_id)
    if visible is not None:
        query = query.filter(visible)
    return (
        query
        .with_for_update()
        .populate_existing()
        .first()
    )


def list_tickets(
    db: Session,
    caller: Identity,
    status: Optional[int] = None,
    priority: Optional[int] = None,
    category: Optional[int] = None,
) -> List[Ticket]:
    query = _ticket_query(db).filter(policy.visibility(caller, Action.LIST_TICKETS))

    if status is not None:
        query = query.filter(Ticket.status == status)
    if priority is not None:
        query = query.filter(Ticket.priority == priority)
    if category is not None:
        query = query.filter(Ticket.category == category)

    return query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def get_ticket(db: Session, caller: Identity, ticket_id: int) -> Ticket:
    return _visible_ticket(db, caller, ticket_id, Action.READ_TICKET)


def list_updates(db: Session, caller: Identity, ticket_id: int) -> List[Update]:
    _visible_ticket(db, caller, ticket_id, Action.READ_TICKET)
    return (
        db.query(Update)
        .options(joinedload(Update.author))
        .filter(Update.ticket_id == ticket_id)
        .order_by(Update.created_at.asc(), Update.id.asc())
        .all()
    )


def ticket_stats(db: Session, caller: Identity) -> dict:
    policy.authorize(caller, Action.READ_AGGREGATES)

    def count_where(cond):
        return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

    row = db.query(
        func.count(Ticket.id),
        count_where(Ticket.status == TicketStatus.OPEN),
        count_where(Ticket.status == TicketStatus.IN_PROGRESS),
        count_where(Ticket.status == TicketStatus.RESOLVED),
        count_where(Ticket.status == TicketStatus.CLOSED),
        count_where(Ticket.priority == TicketPriority.LOW),
        count_where(Ticket.priority == TicketPriority.MEDIUM),
        count_where(Ticket.priority == TicketPriority.HIGH),
        count_where(Ticket.priority == TicketPriority.URGENT),
    ).one()
    total, open_, in_progress, resolved, closed, low, medium, high, urgent = (int(v) for v in row)
    return {
        "total_tickets": total,
        "open_tickets": open_,
        "in_progress_tickets": in_progress,
        "resolved_tickets": resolved,
        "closed_tickets": closed,
        "urgent_tickets": urgent,
        "by_priority": {"low": low, "medium": medium, "high": high, "urgent": urgent},
    }


# --- mutations ---

def create_ticket(
    db: Session,
    caller: Identity,
    *,
    title: Any,
    description: Any,
    priority: Any,
    category: Any,
) -> Ticket:
    policy.authorize(caller, Action.CREATE_TICKET)

    errors: List[Dict[str, str]] = []
    title = _text("title", title, TITLE_MAX, errors)
    description = _text("description", description, DESCRIPTION_MAX, errors)
    priority = _member(TicketPriority, "priority", priority, errors)
    category = _member(TicketCategory, "category", category, errors)
    _raise_if(errors)

    def work() -> Ticket:
        now = _utcnow()
        ticket = Ticket(
            id=sequences.next_value(db, sequences.TICKET),
            title=title,
            description=description,
            priority=int(priority),
            category=int(category),
            status=int(TicketStatus.OPEN),
            created_by=caller.id,
            created_at=now,
            updated_at=now,
        )
        db.add(ticket)
        db.flush()
        return ticket

    ticket = run_in_transaction(db, work)
    logger.info("Ticket %s created by user %s", ticket.id, caller.id)
    return ticket


def update_fields(db: Session, caller: Identity, ticket_id: int, patch: TicketUpdate) -> Ticket:
    """
    Apply a coordinator's patch of status / assignee / priority.

    Only fields present in the request are considered. Every present field is
    validated before anything is written; one bad field rejects the patch.
    """
    policy.authorize(caller, Action.MUTATE_TICKET)

    present = [f for f in PATCHABLE_FIELDS if f in patch.model_fields_set]
    if not present:
        raise ValidationError.single("body", "No valid fields to update")

    def work() -> Ticket:
        ticket = _locked_ticket(db, ticket_id)
        if ticket is None:
            raise NotFound("Ticket not found")

        errors: List[Dict[str, str]] = []
        new_status = None
        new_priority = None
        new_assignee = ticket.assigned_to

        if "status" in present:
            new_status = _member(TicketStatus, "status", patch.status, errors)
        if "priority" in present:
            new_priority = _member(TicketPriority, "priority", patch.priority, errors)
        if "assigned_to" in present:
            new_assignee = patch.assigned_to
            if new_assignee is not None and not directory.is_coordinator(db, new_assignee):
                errors.append({"field": "assignedTo", "message": "Assignee must be an IT coordinator"})
        _raise_if(errors)

        current = TicketStatus(ticket.status)
        if new_status is not None and not can_transition(current, new_status):
            raise InvalidTransition(
                f"Cannot move ticket from {current.name} to {new_status.name}"
            )

        if new_status is not None:
            ticket.status = int(new_status)
        if new_priority is not None:
            ticket.priority = int(new_priority)
        ticket.assigned_to = new_assignee
        ticket.updated_at = _utcnow()
        db.flush()
        return ticket

    ticket = run_in_transaction(db, work)
    logger.info("Ticket %s updated by coordinator %s (%s)", ticket_id, caller.id, ", ".join(present))
    return ticket


def delete_ticket(db: Session, caller: Identity, ticket_id: int) -> int:
    """Delete a ticket and its updates; returns how many updates went with it."""
    if policy.scope_for(caller.role, Action.DELETE_TICKET) is None:
        policy.authorize(caller, Action.DELETE_TICKET)

    def work() -> int:
        ticket = _locked_ticket(db, ticket_id)
        if ticket is None:
            raise NotFound("Ticket not found")
        policy.authorize(caller, Action.DELETE_TICKET, ticket.created_by)

        # children first so the foreign key never dangles
        removed = (
            db.query(Update)
            .filter(Update.ticket_id == ticket_id)
            .delete(synchronize_session=False)
        )
        db.delete(ticket)
        db.flush()
        return removed

    removed = run_in_transaction(db, work)
    logger.info("Ticket %s deleted by user %s with %s updates", ticket_id, caller.id, removed)
    return removed


def add_update(db: Session, caller: Identity, ticket_id: int, message: Any) -> Update:
    """Append a comment and bump the ticket's ``updated_at`` in the same transaction."""
    errors: List[Dict[str, str]] = []
    message = _text("message", message, MESSAGE_MAX, errors)
    _raise_if(errors)

    def work() -> Update:
        # row lock: a ticket deleted concurrently shows up as NotFound
        ticket = _locked_ticket(db, ticket_id, policy.visibility(caller, Action.ADD_UPDATE))
        if ticket is None:
            raise NotFound("Ticket not found")

        now = _utcnow()
        update = Update(
            id=sequences.next_value(db, sequences.UPDATE),
            ticket_id=ticket.id,
            updated_by=caller.id,
            message=message,
            created_at=now,
        )
        db.add(update)
        ticket.updated_at = now
        db.flush()
        return update

    update = run_in_transaction(db, work)
    logger.info("Update %s added to ticket %s by user %s", update.id, ticket_id, caller.id)
    return update
