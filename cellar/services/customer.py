from cellar.database.models import Customer
from cellar.database.schemas import CustomerInput, CustomerSchema, CustomerListItem, CustomerSummary
from cellar.exceptions import NotFound, Conflict
from cellar.logging import get_logger
from cellar.repositories import CustomerRepository

logger = get_logger(__name__)


def _clashing_fields(existing: Customer, customer: CustomerInput) -> str:
    clashes = []

    if customer.email is not None and existing.email == customer.email:
        clashes.append(f"email: {existing.email}")

    if existing.document == customer.document:
        clashes.append(f"CNPJ: {existing.document}")

    if existing.state_registration == customer.state_registration:
        clashes.append(f"ie: {existing.state_registration}")

    return ", ".join(clashes)


class CustomerService:
    def __init__(self, customer_repository: CustomerRepository):
        self.customer_repository = customer_repository

    async def create_customer(self, customer: CustomerInput) -> dict[str, str]:
        existing_customer = await self.customer_repository.existing_customer(
            document=customer.document,
            email=customer.email,
            state_registration=customer.state_registration
        )

        if existing_customer:
            raise Conflict(f"Dados já cadastrados para outro cliente: {_clashing_fields(existing_customer, customer)}")

        new_customer = await self.customer_repository.create(customer)

        return {"customer_id": new_customer.id}

    async def get_customer_details(self, customer_id: str) -> CustomerSchema:
        customer = await self.customer_repository.find_by_id(customer_id)

        if not customer:
            raise NotFound(f"Cliente não encontrado com o ID: {customer_id}")

        return CustomerSchema.model_validate(customer)

    async def list_customers(self, search_term: str = None) -> list[CustomerListItem]:
        customers = await self.customer_repository.list_customers(search_term)

        return [CustomerListItem.model_validate(customer) for customer in customers]

    async def list_customers_summary(self) -> list[CustomerSummary]:
        """Per active customer with an open consignment: wine types and bottles still out."""
        customers = await self.customer_repository.list_customers_summary()
        summary = []

        for customer in customers:
            if not customer.consigned:
                continue

            lines = [line for consigned in customer.consigned for line in consigned.wines_on_consigned]

            summary.append(CustomerSummary(
                customer_id=customer.id,
                customer=customer.name,
                consigned_id=customer.consigned[0].id,
                total_types=len({line.wine.type for line in lines}),
                total_balance=sum(line.balance for line in lines)
            ))

        return summary

    async def update_customer(self, customer: CustomerInput, customer_id: str) -> dict[str, str]:
        existing_customer = await self.customer_repository.existing_customer(
            document=customer.document,
            email=customer.email,
            state_registration=customer.state_registration,
            customer_id=customer_id
        )

        if existing_customer:
            raise Conflict(f"Já existe um cliente com os dados informados: {_clashing_fields(existing_customer, customer)}")

        if not await self.customer_repository.find_by_id(customer_id):
            raise NotFound(f"Cliente não encontrado com o ID: {customer_id}")

        updated_customer = await self.customer_repository.update(customer_id, customer)
        logger.info(f"Updated customer {updated_customer.id}")

        return {"updated_customer_id": updated_customer.id}

    async def delete_customer(self, customer_id: str):
        if not await self.customer_repository.find_by_id(customer_id):
            raise NotFound(f"Cliente não encontrado com o ID: {customer_id}")

        await self.customer_repository.disable_customer(customer_id)
