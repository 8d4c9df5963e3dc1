"""
Diagrams Router for Classboard

Diagram CRUD, sharing and partial document edits.
Every endpoint returns the full diagram after the change.
"""
from uuid import UUID
from typing import Annotated
from fastapi import APIRouter, Depends, Path, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from classboard.database import get_db
from classboard.models.user import User
from classboard.services.diagram_service import DiagramService
from classboard.schemas.diagram import (
    DiagramCreate, DiagramUpdate, DiagramResponse, DiagramListResponse,
    ElementUpdate, Position, ClassCreate, Attribute, AttributeUpdate,
    RelationCreate, RelationUpdate,
)
from classboard.routers.users import get_current_user
from classboard.utils.rate_limit import rate_limit

router = APIRouter(prefix="/api/diagrams", tags=["Diagrams"])

DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AttributeIndex = Annotated[int, Path(ge=0)]


# ==================== Aggregate ====================

@router.post("", response_model=DiagramResponse, status_code=status.HTTP_201_CREATED)
@rate_limit(limit=20, window=60, identifier="create_diagram")
async def create_diagram(request: Request, data: DiagramCreate, db: DbSession, current_user: CurrentUser):
    """Create a diagram owned by the caller - 20 requests / minute"""
    content = data.content.model_dump(exclude_none=True) if data.content else None
    return await DiagramService(db).create(
        name=data.name,
        description=data.description,
        content=content,
        owner=current_user,
    )


@router.get("", response_model=list[DiagramListResponse])
@rate_limit(limit=60, window=60, identifier="list_diagrams")
async def list_diagrams(request: Request, db: DbSession, current_user: CurrentUser):
    """Diagrams owned by the caller"""
    return await DiagramService(db).find_all_by_user(current_user.id)


@router.get("/shared", response_model=list[DiagramResponse])
@rate_limit(limit=60, window=60, identifier="list_shared_diagrams")
async def list_shared_diagrams(request: Request, db: DbSession, current_user: CurrentUser):
    """Diagrams shared with the caller"""
    return await DiagramService(db).find_shared(current_user.id)


@router.get("/{diagram_id}", response_model=DiagramResponse)
@rate_limit(limit=60, window=60, identifier="get_diagram")
async def get_diagram(request: Request, diagram_id: UUID, db: DbSession, current_user: CurrentUser):
    """
    Diagram detail.

    Raises:
        DiagramNotFoundException: Diagram missing or deleted
        DiagramAccessDeniedException: Caller has no access
    """
    return await DiagramService(db).find_one(diagram_id, current_user.id)


@router.patch("/{diagram_id}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="update_diagram")
async def update_diagram(
    request: Request, diagram_id: UUID, data: DiagramUpdate, db: DbSession, current_user: CurrentUser
):
    """
    Overwrite name, description or the whole content.

    Raises:
        DiagramRevisionConflictException: revision is stale
    """
    return await DiagramService(db).update(
        diagram_id, data.model_dump(exclude_unset=True), current_user.id
    )


@router.delete("/{diagram_id}", status_code=status.HTTP_204_NO_CONTENT)
@rate_limit(limit=10, window=60, identifier="delete_diagram")
async def delete_diagram(request: Request, diagram_id: UUID, db: DbSession, current_user: CurrentUser):
    """Soft delete"""
    await DiagramService(db).remove(diagram_id, current_user.id)


@router.post("/{diagram_id}/share/{user_id}", response_model=DiagramResponse)
@rate_limit(limit=20, window=60, identifier="share_diagram")
async def share_diagram(
    request: Request, diagram_id: UUID, user_id: UUID, db: DbSession, current_user: CurrentUser
):
    """
    Share with another user. Owner only.

    Raises:
        NotDiagramOwnerException: Caller is not the owner
        UserNotFoundException: Target user does not exist
    """
    return await DiagramService(db).share_diagram(diagram_id, user_id, current_user.id)


# ==================== Elements ====================

@router.patch("/{diagram_id}/elements/{element_id}", response_model=DiagramResponse)
@rate_limit(limit=300, window=60, identifier="update_element")
async def update_element(
    request: Request, diagram_id: UUID, element_id: str, data: ElementUpdate,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).update_element(
        diagram_id, element_id, data.model_dump(exclude_unset=True), current_user.id
    )


@router.put("/{diagram_id}/elements/{element_id}/position", response_model=DiagramResponse)
@rate_limit(limit=300, window=60, identifier="move_element")
async def move_element(
    request: Request, diagram_id: UUID, element_id: str, position: Position,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).move_element(
        diagram_id, element_id, position.model_dump(), current_user.id
    )


# ==================== Classes ====================

@router.post("/{diagram_id}/classes/{class_id}", response_model=DiagramResponse,
             status_code=status.HTTP_201_CREATED)
@rate_limit(limit=100, window=60, identifier="add_class")
async def add_class(
    request: Request, diagram_id: UUID, class_id: str, data: ClassCreate,
    db: DbSession, current_user: CurrentUser
):
    """
    Raises:
        ClassAlreadyExistsException: class_id already used
    """
    return await DiagramService(db).add_class(
        diagram_id, class_id, data.model_dump(exclude_none=True), current_user.id
    )


@router.delete("/{diagram_id}/classes/{class_id}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="remove_class")
async def remove_class(
    request: Request, diagram_id: UUID, class_id: str, db: DbSession, current_user: CurrentUser
):
    """Removes the class and its relations"""
    return await DiagramService(db).remove_class(diagram_id, class_id, current_user.id)


@router.post("/{diagram_id}/classes/{class_id}/attributes", response_model=DiagramResponse,
             status_code=status.HTTP_201_CREATED)
@rate_limit(limit=100, window=60, identifier="add_attribute")
async def add_attribute(
    request: Request, diagram_id: UUID, class_id: str, data: Attribute,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).add_attribute(
        diagram_id, class_id, data.model_dump(), current_user.id
    )


@router.patch("/{diagram_id}/classes/{class_id}/attributes/{index}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="update_attribute")
async def update_attribute(
    request: Request, diagram_id: UUID, class_id: str, index: AttributeIndex, data: AttributeUpdate,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).update_attribute(
        diagram_id, class_id, index, data.model_dump(exclude_unset=True), current_user.id
    )


@router.delete("/{diagram_id}/classes/{class_id}/attributes/{index}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="remove_attribute")
async def remove_attribute(
    request: Request, diagram_id: UUID, class_id: str, index: AttributeIndex,
    db: DbSession, current_user: CurrentUser
):
    """Later attributes shift down by one"""
    return await DiagramService(db).remove_attribute(diagram_id, class_id, index, current_user.id)


# ==================== Relations ====================

@router.post("/{diagram_id}/relations/{relation_id}", response_model=DiagramResponse,
             status_code=status.HTTP_201_CREATED)
@rate_limit(limit=100, window=60, identifier="add_relation")
async def add_relation(
    request: Request, diagram_id: UUID, relation_id: str, data: RelationCreate,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).add_relation(
        diagram_id, relation_id, data.model_dump(by_alias=True), current_user.id
    )


@router.patch("/{diagram_id}/relations/{relation_id}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="update_relation")
async def update_relation(
    request: Request, diagram_id: UUID, relation_id: str, data: RelationUpdate,
    db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).update_relation(
        diagram_id, relation_id, data.model_dump(by_alias=True, exclude_unset=True), current_user.id
    )


@router.delete("/{diagram_id}/relations/{relation_id}", response_model=DiagramResponse)
@rate_limit(limit=100, window=60, identifier="remove_relation")
async def remove_relation(
    request: Request, diagram_id: UUID, relation_id: str, db: DbSession, current_user: CurrentUser
):
    return await DiagramService(db).remove_relation(diagram_id, relation_id, current_user.id)
