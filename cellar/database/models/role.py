from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .user_role import UserRole
    from .role_permission import RolePermission


class Role(Base):
    __tablename__ = "roles"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)

    # Relationships
    users: Mapped[list["UserRole"]] = relationship(
        "UserRole",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
    permissions: Mapped[list["RolePermission"]] = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
