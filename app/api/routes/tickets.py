from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.api.deps import get_db
from app.schemas.ticket import (
    TicketCreate,
    TicketCreated,
    TicketListOut,
    TicketOut,
    TicketStatsOut,
    TicketUpdate,
)
from app.core.auth import get_current_user
from app.services import tickets as ticket_service
from app.services.directory import Identity

router = APIRouter(prefix="/tickets", tags=["tickets"])

@router.get("/", response_model=TicketListOut)
def list_tickets(
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
    status: Optional[int] = Query(None, ge=1, le=4),
    priority: Optional[int] = Query(None, ge=1, le=4),
    category: Optional[int] = Query(None, ge=1, le=4),
):
    """Students and teachers see their own tickets; IT coordinators see all of them."""
    rows = ticket_service.list_tickets(
        db, current_user, status=status, priority=priority, category=category
    )
    return {"tickets": rows, "count": len(rows)}

@router.get("/stats/overview", response_model=TicketStatsOut)
def ticket_stats(
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    return ticket_service.ticket_stats(db, current_user)

@router.get("/{ticket_id}", response_model=TicketOut)
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    return ticket_service.get_ticket(db, current_user, ticket_id)

@router.post("/", response_model=TicketCreated, status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: TicketCreate,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    ticket = ticket_service.create_ticket(
        db,
        current_user,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        category=payload.category,
    )
    return {"message": "Ticket created successfully", "ticketId": ticket.id}

@router.patch("/{ticket_id}", response_model=TicketOut)
def update_ticket(
    ticket_id: int,
    payload: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    ticket_service.update_fields(db, current_user, ticket_id, payload)
    return ticket_service.get_ticket(db, current_user, ticket_id)

@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    removed = ticket_service.delete_ticket(db, current_user, ticket_id)
    return {"message": "Ticket deleted successfully", "updatesRemoved": removed}
