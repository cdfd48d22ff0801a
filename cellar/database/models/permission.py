from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .role_permission import RolePermission


class Permission(Base):
    __tablename__ = "permissions"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)

    # Relationships
    roles: Mapped[list["RolePermission"]] = relationship(
        "RolePermission",
        back_populates="permission",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
