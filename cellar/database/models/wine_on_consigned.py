from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.sql.schema import ForeignKey, CheckConstraint
from sqlalchemy.sql.sqltypes import Integer, String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from cellar.utils import aware_utcnow
from .base import Base
from .types import AwareDateTime

if TYPE_CHECKING:
    from .wine import Wine
    from .consigned import Consigned


class WineOnConsigned(Base):
    __tablename__ = "wine_on_consigned"
    wine_id: Mapped[str] = mapped_column(String(36), ForeignKey("wines.id", ondelete="CASCADE"), primary_key=True)
    consigned_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("consigned.id", ondelete="CASCADE"),
        primary_key=True
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False)
    balance: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow)
    updated_at: Mapped[datetime] = mapped_column(AwareDateTime, default=aware_utcnow, onupdate=aware_utcnow)

    # Relationships
    wine: Mapped["Wine"] = relationship("Wine", back_populates="wine_on_consigned", lazy=True)
    consigned: Mapped["Consigned"] = relationship("Consigned", back_populates="wines_on_consigned", lazy=True)

    __table_args__ = (
        CheckConstraint("balance >= 0", name="_balance_non_negative_ck"),
        CheckConstraint("balance <= count", name="_balance_within_count_ck"),
    )
