from uuid import UUID
from datetime import datetime
from typing import Any
from pydantic import BaseModel, ConfigDict, Field
from classboard.schemas.user import UserPublic


class Position(BaseModel):
    x: float
    y: float


class Attribute(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class AttributeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    type: str | None = Field(None, min_length=1)


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1)
    position: Position
    attributes: list[Attribute] | None = None


class ElementUpdate(BaseModel):
    """Partial element record; unknown keys are merged as-is"""
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    position: Position | None = None
    attributes: list[Attribute] | None = None


class RelationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class RelationUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str | None = Field(None, alias="from", min_length=1)
    to: str | None = Field(None, min_length=1)
    type: str | None = Field(None, min_length=1)


class DiagramContent(BaseModel):
    """Element and relation maps, both optional until first written"""
    model_config = ConfigDict(extra="allow")

    elements: dict[str, dict[str, Any]] | None = None
    relations: dict[str, dict[str, Any]] | None = None


class DiagramCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    content: DiagramContent | None = None


class DiagramUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    content: DiagramContent | None = None
    # Revision the client last saw; rejected with 409 if the diagram moved on
    revision: int | None = Field(None, ge=1)


class DiagramResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    content: dict[str, Any]
    owner: UserPublic
    shared_with: list[UserPublic]
    revision: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DiagramListResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    owner: UserPublic
    revision: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
