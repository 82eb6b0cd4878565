from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: int = Field(ge=1, le=3)  # 1=student 2=teacher 3=it coordinator


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    role: int


class UserDetailOut(UserOut):
    created_at: datetime


class UserListOut(BaseModel):
    users: List[UserDetailOut]
    count: int


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class UserStatsOut(BaseModel):
    total_users: int
    students: int
    teachers: int
    it_coordinators: int
