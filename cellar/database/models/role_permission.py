from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.sql.schema import ForeignKey
from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base
from .types import AwareDateTime

if TYPE_CHECKING:
    from .role import Role
    from .permission import Permission


class RolePermission(Base):
    __tablename__ = "role_permissions"
    role_id: Mapped[str] = mapped_column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True
    )
    assigned_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)

    # Relationships
    role: Mapped["Role"] = relationship("Role", back_populates="permissions", lazy=True)
    permission: Mapped["Permission"] = relationship("Permission", back_populates="roles", lazy=True)
