"""User schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ordercrm.models.user import UserRole, UserStatus


class UserBase(BaseModel):
    """Base schema for user."""

    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: UserRole = Field(default=UserRole.OPERATOR)
    status: UserStatus = Field(default=UserStatus.ACTIVE)
    phone: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)


class UserCreate(UserBase):
    """Schema for creating a user."""

    shops: list[str] = Field(default_factory=list, description="Shop names granted")


class UserUpdate(BaseModel):
    """Schema for updating a user. Unset fields are left unchanged."""

    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    phone: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    shops: Optional[list[str]] = Field(None, description="Replaces the granted shops")


class UserResponse(UserBase):
    """Schema for user response including shop permissions."""

    id: int
    shop_names: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
