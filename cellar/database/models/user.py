from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.schema import ForeignKey
from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .customer import Customer
    from .user_role import UserRole


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    associated_customer_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(AwareDateTime, onupdate=aware_utcnow)

    # Relationships
    customer: Mapped[Optional["Customer"]] = relationship("Customer", back_populates="users", lazy=True)
    roles: Mapped[list["UserRole"]] = relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
