from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import get_current_user
from app.schemas.update import UpdateCreate, UpdateCreated, UpdateListOut
from app.services import tickets as ticket_service
from app.services.directory import Identity

router = APIRouter(prefix="/updates", tags=["updates"])


@router.get("/ticket/{ticket_id}", response_model=UpdateListOut)
def list_updates(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    rows = ticket_service.list_updates(db, current_user, ticket_id)
    return {"updates": rows, "count": len(rows)}


@router.post("/", response_model=UpdateCreated, status_code=status.HTTP_201_CREATED)
def add_update(
    payload: UpdateCreate,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    update = ticket_service.add_update(db, current_user, payload.ticket_id, payload.message)
    return {"message": "Update added successfully", "updateId": update.id}
