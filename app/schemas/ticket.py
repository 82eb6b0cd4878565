from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

# Bounds and enum membership are checked by app.services.tickets so that
# direct service callers get the same field-level errors as HTTP clients.

class TicketCreate(BaseModel):
    title: str
    description: str
    priority: int  # 1=low .. 4=urgent
    category: int  # 1=hardware 2=software 3=network 4=other


class TicketUpdate(BaseModel):
    """Patch record: only fields present in the request body are applied."""
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[int] = None
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")
    priority: Optional[int] = None


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    priority: int
    status: int
    category: int
    created_by: int
    assigned_to: Optional[int]
    creator_name: Optional[str] = None
    assignee_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TicketListOut(BaseModel):
    tickets: List[TicketOut]
    count: int


class TicketCreated(BaseModel):
    message: str
    ticketId: int


class PriorityBreakdown(BaseModel):
    low: int
    medium: int
    high: int
    urgent: int


class TicketStatsOut(BaseModel):
    total_tickets: int
    open_tickets: int
    in_progress_tickets: int
    resolved_tickets: int
    closed_tickets: int
    urgent_tickets: int
    by_priority: PriorityBreakdown
