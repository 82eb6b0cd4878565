"""Read/insert access to the user store. No caching: role changes are visible on the next request."""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models.enums import Role
from app.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    id: int
    first_name: str
    last_name: str
    email: str
    role: Role

    @property
    def is_coordinator(self) -> bool:
        return self.role == Role.IT_COORDINATOR

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=Role(user.role),
        )


def resolve(db: Session, user_id: int) -> Identity:
    user = db.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFound("User not found")
    return Identity.from_user(user)


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(
    db: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    role: Role,
) -> User:
    if get_by_email(db, email) is not None:
        raise ValidationError.single("email", "User already exists with this email")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email.lower(),
        password_hash=password_hash,
        role=int(role),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise ValidationError.single("email", "User already exists with this email")
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, Role(user.role).name)
    return user


def list_users(db: Session, role: Optional[Role] = None) -> List[User]:
    q = db.query(User)
    if role is not None:
        return q.filter(User.role == int(role)).order_by(User.first_name, User.last_name).all()
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


def is_coordinator(db: Session, user_id: int) -> bool:
    user = db.get(User, user_id)
    return user is not None and user.role == Role.IT_COORDINATOR


def role_counts(db: Session) -> dict:
    row = db.query(
        func.count(User.id),
        func.coalesce(func.sum(case((User.role == Role.STUDENT, 1), else_=0)), 0),
        func.coalesce(func.sum(case((User.role == Role.TEACHER, 1), else_=0)), 0),
        func.coalesce(func.sum(case((User.role == Role.IT_COORDINATOR, 1), else_=0)), 0),
    ).one()
    return {
        "total_users": int(row[0]),
        "students": int(row[1]),
        "teachers": int(row[2]),
        "it_coordinators": int(row[3]),
    }
