from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.schema import ForeignKey
from sqlalchemy.sql.sqltypes import String, Enum
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from cellar.database.enums import ConsignedStatus
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .customer import Customer
    from .wine_on_consigned import WineOnConsigned


class Consigned(Base):
    __tablename__ = "consigned"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), nullable=False)
    status: Mapped[ConsignedStatus] = mapped_column(
        Enum(ConsignedStatus, name="consigned_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ConsignedStatus.IN_PROGRESS
    )
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(AwareDateTime, onupdate=aware_utcnow)
    closed_at: Mapped[Optional[datetime]] = mapped_column(AwareDateTime)

    # Relationships
    customer: Mapped["Customer"] = relationship("Customer", back_populates="consigned", lazy=True)
    wines_on_consigned: Mapped[list["WineOnConsigned"]] = relationship(
        "WineOnConsigned",
        back_populates="consigned",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
