from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy.sql.sqltypes import Integer, String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base, generate_id
from .types import AwareDateTime

if TYPE_CHECKING:
    from .wine_on_consigned import WineOnConsigned


class Wine(Base):
    __tablename__ = "wines"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    harvest: Mapped[Optional[int]] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # cents
    producer: Mapped[str] = mapped_column(String, nullable=False)
    country: Mapped[str] = mapped_column(String, nullable=False)
    size: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)
    updated_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow, onupdate=aware_utcnow)

    # Relationships
    wine_on_consigned: Mapped[list["WineOnConsigned"]] = relationship(
        "WineOnConsigned",
        back_populates="wine",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy=True
    )
