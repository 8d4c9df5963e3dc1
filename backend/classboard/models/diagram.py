import uuid
from datetime import datetime
from typing import Any
from sqlalchemy import String, Text, DateTime, Integer, ForeignKey, Table, Column, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from classboard.database import Base
from classboard.models.user import User


# Many-to-many: diagrams <-> users they are shared with
diagram_shares = Table(
    "diagram_shares",
    Base.metadata,
    Column("diagram_id", ForeignKey("diagrams.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


def empty_content() -> dict[str, Any]:
    return {}


class Diagram(Base):
    """Class diagram: metadata, owner, collaborators and the element/relation document"""
    __tablename__ = "diagrams"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=empty_content)
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    owner: Mapped[User] = relationship(User, foreign_keys=[owner_id])
    shared_with: Mapped[list[User]] = relationship(User, secondary=diagram_shares)

    # Optimistic concurrency: UPDATE ... WHERE revision = :loaded_revision
    __mapper_args__ = {"version_id_col": revision}

    def has_access(self, user_id: uuid.UUID) -> bool:
        return self.owner_id == user_id or any(u.id == user_id for u in self.shared_with)
