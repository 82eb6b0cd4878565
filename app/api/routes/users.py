from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import require_role
from app.core.errors import ValidationError
from app.models.enums import Role
from app.schemas.user import UserListOut, UserStatsOut
from app.services import directory
from app.services.directory import Identity

router = APIRouter(prefix="/users", tags=["users"])

coordinator_only = require_role(Role.IT_COORDINATOR)


@router.get("/", response_model=UserListOut)
def list_users(
    db: Session = Depends(get_db),
    current_user: Identity = Depends(coordinator_only),
):
    rows = directory.list_users(db)
    return {"users": rows, "count": len(rows)}


@router.get("/role/{role}", response_model=UserListOut)
def list_users_by_role(
    role: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(coordinator_only),
):
    if role not in {r.value for r in Role}:
        raise ValidationError.single("role", "Invalid role specified")
    rows = directory.list_users(db, Role(role))
    return {"users": rows, "count": len(rows)}


@router.get("/stats/overview", response_model=UserStatsOut)
def user_stats(
    db: Session = Depends(get_db),
    current_user: Identity = Depends(coordinator_only),
):
    return directory.role_counts(db)
