from classboard.schemas.user import UserCreate, UserPublic, UserResponse
from classboard.schemas.diagram import (
    Position, Attribute, AttributeUpdate, ClassCreate, ElementUpdate,
    RelationCreate, RelationUpdate, DiagramContent,
    DiagramCreate, DiagramUpdate, DiagramResponse, DiagramListResponse,
)

__all__ = [
    "UserCreate", "UserPublic", "UserResponse",
    "Position", "Attribute", "AttributeUpdate", "ClassCreate", "ElementUpdate",
    "RelationCreate", "RelationUpdate", "DiagramContent",
    "DiagramCreate", "DiagramUpdate", "DiagramResponse", "DiagramListResponse",
]
