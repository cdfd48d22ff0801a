from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .address import Address
    from .user import User
    from .consigned import Consigned


class Customer(Base):
    __tablename__ = "customers"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    document: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(String)
    email: Mapped[Optional[str]] = mapped_column(String, unique=True)
    cellphone: Mapped[Optional[str]] = mapped_column(String)
    business_phone: Mapped[Optional[str]] = mapped_column(String)
    state_registration: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(AwareDateTime, onupdate=aware_utcnow)
    disabled_at: Mapped[Optional[datetime]] = mapped_column(AwareDateTime)

    # Relationships
    address: Mapped[Optional["Address"]] = relationship(
        "Address",
        back_populates="customer",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
    users: Mapped[list["User"]] = relationship("User", back_populates="customer", passive_deletes=True, lazy=True)
    consigned: Mapped[list["Consigned"]] = relationship(
        "Consigned",
        back_populates="customer",
        order_by="Consigned.created_at",
        lazy=True
    )
