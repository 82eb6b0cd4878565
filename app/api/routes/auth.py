"""
Registration and login.

Passwords are stored as bcrypt hashes; a successful register/login returns a
signed credential for the Authorization header.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core import security
from app.core.auth import get_current_user
from app.core.errors import Unauthenticated
from app.models.enums import Role
from app.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserOut
from app.services import directory
from app.services.directory import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = directory.create_user(
        db,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password_hash=security.hash_password(payload.password),
        role=Role(payload.role),
    )
    token = security.create_access_token(user.id, user.role)
    return {
        "message": "User created successfully",
        "token": token,
        "user": Identity.from_user(user),
    }


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = directory.get_by_email(db, payload.email)
    if user is None or not security.check_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise Unauthenticated("Invalid credentials")

    token = security.create_access_token(user.id, user.role)
    return {
        "message": "Login successful",
        "token": token,
        "user": Identity.from_user(user),
    }


@router.get("/profile")
def profile(current_user: Identity = Depends(get_current_user)):
    return {"user": UserOut.model_validate(current_user)}


@router.get("/verify")
def verify(current_user: Identity = Depends(get_current_user)):
    return {"valid": True, "user": UserOut.model_validate(current_user)}
