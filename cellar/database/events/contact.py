from sqlalchemy import event
from sqlalchemy.engine.base import Connection
from sqlalchemy.orm.mapper import Mapper

from cellar.database.models import Customer, User
from cellar.logging import get_logger

__all__ = [
    "normalize_customer",
    "normalize_user"
]

logger = get_logger(__name__)


def _normalize_email(email: str | None) -> str | None:
    if not isinstance(email, str):
        return email

    return email.strip().lower() or None


@event.listens_for(Customer, "before_insert")
@event.listens_for(Customer, "before_update")
def normalize_customer(mapper: Mapper[Customer], connection: Connection, target: Customer):
    target.email = _normalize_email(target.email)

    if isinstance(target.document, str):
        target.document = target.document.strip()


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def normalize_user(mapper: Mapper[User], connection: Connection, target: User):
    email = _normalize_email(target.email)

    if email != target.email:
        logger.debug(f"Normalized User email before flush: {target.email!r} -> {email!r}")
        target.email = email
