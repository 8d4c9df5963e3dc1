from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, Field
from classboard.models.user import Role


class UserCreate(BaseModel):
    """Used for seeding; registration itself lives in the auth service"""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=100)
    password: str = Field(..., min_length=6)


class UserPublic(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role

    class Config:
        from_attributes = True


class UserResponse(UserPublic):
    created_at: datetime
