from sqlalchemy import event
from sqlalchemy.engine.base import Connection
from sqlalchemy.orm.mapper import Mapper

from cellar.database.models import Consigned
from cellar.database.enums import ConsignedStatus
from cellar.logging import get_logger
from cellar.utils import aware_utcnow

__all__ = [
    "stamp_closed_at"
]

logger = get_logger(__name__)


@event.listens_for(Consigned, "before_insert")
@event.listens_for(Consigned, "before_update")
def stamp_closed_at(mapper: Mapper[Consigned], connection: Connection, target: Consigned):
    if target.status not in (None, ConsignedStatus.IN_PROGRESS) and target.closed_at is None:
        target.closed_at = aware_utcnow()
        logger.debug(f"Stamped closed_at on Consigned {target.id} ({target.status})")
