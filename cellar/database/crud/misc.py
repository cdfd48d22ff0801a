from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.status import StatusTarget, get_summary_status, get_consignments_status
from .decorators import session_manager


class Misc:
    @session_manager()
    async def status(
        self,
        target: StatusTarget = "summary",
        session: AsyncSession = None
    ) -> dict:
        match target:
            case "summary":
                return await get_summary_status(session)
            case "consignments":
                return await get_consignments_status(session)
            case _:
                raise ValueError(f"Unknown status target: {target}")
