from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UpdateCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticket_id: int = Field(alias="ticketId")
    message: str


class UpdateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    message: str
    updated_by: int
    author_name: Optional[str] = None
    created_at: datetime


class UpdateListOut(BaseModel):
    updates: List[UpdateOut]
    count: int


class UpdateCreated(BaseModel):
    message: str
    updateId: int
