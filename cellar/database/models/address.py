from typing import TYPE_CHECKING

from sqlalchemy.sql.schema import ForeignKey
from sqlalchemy.sql.sqltypes import String
from sqlalchemy.orm import relationship, mapped_column
from sqlalchemy.orm.base import Mapped

from .base import Base, generate_id

if TYPE_CHECKING:
    from .customer import Customer


class Address(Base):
    __tablename__ = "addresses"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    customer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("customers.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    street_address: Mapped[str] = mapped_column(String, nullable=False, default="")
    number: Mapped[str] = mapped_column(String, nullable=False, default="")
    neighborhood: Mapped[str] = mapped_column(String, nullable=False, default="")
    city: Mapped[str] = mapped_column(String, nullable=False, default="")
    state: Mapped[str] = mapped_column(String, nullable=False, default="")
    zip_code: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Relationships
    customer: Mapped["Customer"] = relationship("Customer", back_populates="address", lazy=True)
