from typing import Iterable

from cellar.database.enums import ConsignedStatus
from cellar.database.schemas import ConsignedItemInput, ConsignedSchema, WineOnConsignedSchema
from cellar.exceptions import NotFound, Conflict, BadRequest, CheckConstraintError
from cellar.logging import get_logger
from cellar.repositories import ConsignedRepository, CustomerRepository

CONSIGNED_NOT_FOUND = "Consignado não encontrado"
logger = get_logger(__name__)


class ConsignedService:
    def __init__(self, consigned_repository: ConsignedRepository, customer_repository: CustomerRepository):
        self.consigned_repository = consigned_repository
        self.customer_repository = customer_repository

    async def create_consigned(self, customer_id: str, items: Iterable[ConsignedItemInput]) -> dict[str, str]:
        """Leave wines with an active customer; repeated wines are merged into one line."""
        counts: dict[str, int] = {}

        for item in items:
            counts[item.wine_id] = counts.get(item.wine_id, 0) + item.count

        if not counts:
            raise BadRequest("Informe ao menos um vinho")

        if not await self.customer_repository.find_by_id(customer_id):
            raise NotFound(f"Cliente não encontrado com o ID: {customer_id}")

        if await self.consigned_repository.count_existing_wines(list(counts)) != len(counts):
            raise NotFound("Vinho não encontrado")

        consigned = await self.consigned_repository.create(customer_id, counts)
        logger.info(f"Opened consignment {consigned.id} for customer {customer_id} ({len(counts)} wine(s))")

        return {"consigned_id": consigned.id}

    async def get_consigned(self, consigned_id: str) -> ConsignedSchema:
        consigned = await self.consigned_repository.find_by_id(consigned_id)

        if not consigned:
            raise NotFound(CONSIGNED_NOT_FOUND)

        return ConsignedSchema.model_validate(consigned)

    async def register_sale(self, consigned_id: str, wine_id: str, quantity: int) -> WineOnConsignedSchema:
        """Record bottles sold by the customer, lowering the line's balance."""
        line = await self.consigned_repository.find_line(consigned_id, wine_id)

        if not line:
            raise NotFound("Vinho não encontrado neste consignado")

        if line.consigned.status != ConsignedStatus.IN_PROGRESS:
            raise Conflict("Consignado não está em andamento")

        if quantity <= 0 or quantity > line.balance:
            raise Conflict(f"Quantidade inválida: {quantity} (saldo: {line.balance})")

        try:
            updated_line = await self.consigned_repository.decrement_balance(consigned_id, wine_id, quantity)
        except CheckConstraintError:
            # another sale lowered the balance in the meantime
            raise Conflict(f"Quantidade inválida: {quantity} (saldo insuficiente)")

        return WineOnConsignedSchema.model_validate(updated_line)

    async def close_consigned(self, consigned_id: str) -> ConsignedSchema:
        consigned = await self.consigned_repository.find_by_id(consigned_id)

        if not consigned:
            raise NotFound(CONSIGNED_NOT_FOUND)

        if consigned.status != ConsignedStatus.IN_PROGRESS:
            raise Conflict("Consignado não está em andamento")

        closed = await self.consigned_repository.close(consigned_id)
        logger.info(f"Closed consignment {consigned_id}")

        return ConsignedSchema.model_validate(closed)
