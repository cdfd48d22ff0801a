from sqlalchemy.sql import select
from sqlalchemy.sql.functions import func
from sqlalchemy.ext.asyncio.session import AsyncSession

from cellar.database.models import ModelClass, Customer, Consigned
from cellar.database.enums import ConsignedStatus


async def get_summary_status(session: AsyncSession) -> dict:
    status = {"target": "summary"}

    for model_class in ModelClass:
        model = model_class.value
        status[model.__tablename__] = await session.scalar(select(func.count()).select_from(model))

    return status


async def get_consignments_status(session: AsyncSession) -> dict:
    status = {"target": "consignments"}
    select_stmt = (
        select(Consigned.status, func.count())
        .group_by(Consigned.status)
    )

    for consigned_status, count in (await session.execute(select_stmt)).all():
        status[ConsignedStatus(consigned_status).value] = count

    status["active_customers"] = await session.scalar(
        select(func.count())
        .select_from(Customer)
        .where(Customer.disabled_at.is_(None))
    )

    return status
