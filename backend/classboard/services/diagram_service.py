"""
Diagram Service

Owns diagram aggregates: CRUD, sharing and partial edits of the
element/relation document. Every operation other than create and the two
listings goes through resolve_with_access first, edits a copy of the
document and saves the whole row. The row's revision column makes a save
fail with a 409 if another writer saved in between.
"""
import copy
from datetime import datetime
from typing import Any, Callable
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError
from classboard.models.diagram import Diagram
from classboard.models.user import User
from classboard.services import diagram_document as document
from classboard.services.user_service import UserService
from classboard.exceptions import (
    DiagramNotFoundException,
    DiagramAccessDeniedException,
    NotDiagramOwnerException,
    DiagramRevisionConflictException,
    UserNotFoundException,
)
from classboard.utils.logging_config import diagram_logger


class DiagramService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _query(self):
        return (
            select(Diagram)
            .options(selectinload(Diagram.owner), selectinload(Diagram.shared_with))
            .where(Diagram.deleted_at.is_(None))
        )

    async def _save(self, diagram: Diagram) -> Diagram:
        # Rollback expires the instance, so read the id while it is still loaded
        diagram_id = diagram.id
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            diagram_logger.warning("Stale write rejected", extra={"diagram_id": str(diagram_id)})
            raise DiagramRevisionConflictException()
        return diagram

    async def resolve_with_access(self, diagram_id: UUID, user_id: UUID) -> Diagram:
        """
        Load a live diagram the caller may read and edit.

        Raises:
            DiagramNotFoundException: Diagram missing or soft-deleted
            DiagramAccessDeniedException: Caller is neither owner nor collaborator
        """
        result = await self.db.execute(
            self._query()
            .where(Diagram.id == diagram_id)
            .execution_options(populate_existing=True)
        )
        diagram = result.scalar_one_or_none()
        if not diagram:
            raise DiagramNotFoundException()
        if not diagram.has_access(user_id):
            diagram_logger.warning(
                f"Diagram access denied",
                extra={"diagram_id": str(diagram_id), "user_id": str(user_id)}
            )
            raise DiagramAccessDeniedException()
        return diagram

    # ==================== Aggregate ====================

    async def create(self, name: str, owner: User, description: str | None = None,
                     content: dict[str, Any] | None = None) -> Diagram:
        content = document.validate_content(content) if content is not None else {}
        diagram = Diagram(
            name=name,
            description=description,
            content=content,
            owner=owner,
            shared_with=[],
        )
        self.db.add(diagram)
        await self._save(diagram)
        diagram_logger.info(
            f"Diagram created",
            extra={"diagram_id": str(diagram.id), "owner_id": str(owner.id)}
        )
        return diagram

    async def find_all_by_user(self, user_id: UUID) -> list[Diagram]:
        """Diagrams owned by the user"""
        result = await self.db.execute(
            self._query()
            .where(Diagram.owner_id == user_id)
            .order_by(Diagram.updated_at.desc())
        )
        return list(result.scalars().all())

    async def find_shared(self, user_id: UUID) -> list[Diagram]:
        """Diagrams other users shared with the user"""
        result = await self.db.execute(
            self._query()
            .where(Diagram.shared_with.any(User.id == user_id))
            .order_by(Diagram.updated_at.desc())
        )
        return list(result.scalars().all())

    async def find_one(self, diagram_id: UUID, user_id: UUID) -> Diagram:
        return await self.resolve_with_access(diagram_id, user_id)

    async def update(self, diagram_id: UUID, patch: dict[str, Any], user_id: UUID) -> Diagram:
        """
        Overwrite the given top-level fields (name, description, content).
        A content value replaces the whole document.

        Raises:
            DiagramRevisionConflictException: patch["revision"] is older than the stored one
        """
        diagram = await self.resolve_with_access(diagram_id, user_id)
        patch = dict(patch)
        expected = patch.pop("revision", None)
        if expected is not None and expected != diagram.revision:
            raise DiagramRevisionConflictException(expected, diagram.revision)

        if patch.get("name") is None:
            patch.pop("name", None)
        if "content" in patch:
            patch["content"] = document.validate_content(patch["content"] or {})
        for field in ("name", "description", "content"):
            if field in patch:
                setattr(diagram, field, patch[field])
        await self._save(diagram)
        diagram_logger.info(
            f"Diagram updated",
            extra={"diagram_id": str(diagram_id), "user_id": str(user_id), "fields": sorted(patch)}
        )
        return diagram

    async def remove(self, diagram_id: UUID, user_id: UUID) -> Diagram:
        """Soft delete: the row stays, reads stop returning it."""
        diagram = await self.resolve_with_access(diagram_id, user_id)
        diagram.deleted_at = datetime.utcnow()
        await self._save(diagram)
        diagram_logger.info(
            f"Diagram deleted",
            extra={"diagram_id": str(diagram_id), "deleted_by": str(user_id)}
        )
        return diagram

    async def share_diagram(self, diagram_id: UUID, target_user_id: UUID, user_id: UUID) -> Diagram:
        """
        Grant another user edit access. Owner only.
        Sharing with the owner or an existing collaborator changes nothing.

        Raises:
            NotDiagramOwnerException: Caller is a collaborator, not the owner
            UserNotFoundException: Target user does not exist
        """
        diagram = await self.resolve_with_access(diagram_id, user_id)
        if diagram.owner_id != user_id:
            diagram_logger.warning(
                f"Non-owner tried to share diagram",
                extra={"diagram_id": str(diagram_id), "user_id": str(user_id)}
            )
            raise NotDiagramOwnerException()

        target = await UserService(self.db).get_user_by_id(target_user_id)
        if not target:
            raise UserNotFoundException("User to share not found")

        if diagram.has_access(target.id):
            diagram_logger.debug(f"User already has access to diagram: {target.id}")
            return diagram

        diagram.shared_with.append(target)
        await self._save(diagram)
        diagram_logger.info(
            f"Diagram shared",
            extra={"diagram_id": str(diagram_id), "owner_id": str(user_id), "shared_with": str(target.id)}
        )
        return diagram

    # ==================== Document edits ====================

    async def _edit_content(
        self,
        diagram_id: UUID,
        user_id: UUID,
        action: str,
        edit: Callable[[dict[str, Any]], Any],
    ) -> Diagram:
        diagram = await self.resolve_with_access(diagram_id, user_id)
        content = copy.deepcopy(diagram.content or {})
        edit(content)
        diagram.content = content
        flag_modified(diagram, "content")
        await self._save(diagram)
        diagram_logger.info(
            f"Diagram {action}",
            extra={"diagram_id": str(diagram_id), "user_id": str(user_id), "revision": diagram.revision}
        )
        return diagram

    async def update_element(self, diagram_id: UUID, element_id: str, fields: dict[str, Any],
                             user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "element updated",
            lambda content: document.update_element(content, element_id, fields),
        )

    async def move_element(self, diagram_id: UUID, element_id: str, position: dict[str, Any],
                           user_id: UUID) -> Diagram:
        return await self.update_element(diagram_id, element_id, {"position": position}, user_id)

    async def add_class(self, diagram_id: UUID, class_id: str, class_data: dict[str, Any],
                        user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "class added",
            lambda content: document.add_class(content, class_id, class_data),
        )

    async def remove_class(self, diagram_id: UUID, class_id: str, user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "class removed",
            lambda content: document.remove_class(content, class_id),
        )

    async def add_attribute(self, diagram_id: UUID, class_id: str, attribute: dict[str, Any],
                            user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "attribute added",
            lambda content: document.add_attribute(content, class_id, attribute),
        )

    async def update_attribute(self, diagram_id: UUID, class_id: str, index: int,
                               fields: dict[str, Any], user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "attribute updated",
            lambda content: document.update_attribute(content, class_id, index, fields),
        )

    async def remove_attribute(self, diagram_id: UUID, class_id: str, index: int,
                               user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "attribute removed",
            lambda content: document.remove_attribute(content, class_id, index),
        )

    async def add_relation(self, diagram_id: UUID, relation_id: str, relation: dict[str, Any],
                           user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "relation added",
            lambda content: document.add_relation(content, relation_id, relation),
        )

    async def update_relation(self, diagram_id: UUID, relation_id: str, fields: dict[str, Any],
                              user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "relation updated",
            lambda content: document.update_relation(content, relation_id, fields),
        )

    async def remove_relation(self, diagram_id: UUID, relation_id: str, user_id: UUID) -> Diagram:
        return await self._edit_content(
            diagram_id, user_id, "relation removed",
            lambda content: document.remove_relation(content, relation_id),
        )
