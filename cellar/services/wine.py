from typing import Any

from cellar.database.models import Wine
from cellar.database.schemas import WineInput, WineSchema, WineDetails, WineMetric
from cellar.exceptions import NotFound, BadRequest
from cellar.logging import get_logger
from cellar.repositories import WineRepository

WINE_NOT_FOUND = "Vinho não encontrado"
logger = get_logger(__name__)


def to_cents(price: float) -> int:
    return round(price * 100)


def from_cents(price: int) -> float:
    return price / 100


def _wine_fields(wine: Wine) -> dict[str, Any]:
    fields = {name: getattr(wine, name) for name in WineSchema.model_fields}
    fields["price"] = from_cents(wine.price)

    return fields


class WineService:
    """Wine catalogue; prices are currency units outside and integer cents in storage."""
    def __init__(self, wine_repository: WineRepository):
        self.wine_repository = wine_repository

    async def create_wine(self, wine: WineInput) -> dict[str, str]:
        data = wine.model_dump()
        data["price"] = to_cents(wine.price)
        new_wine = await self.wine_repository.create_wine(data)

        return {"wine_id": new_wine.id}

    async def get_wine(self, wine_id: str) -> WineSchema:
        wine = await self.wine_repository.find_by_id(wine_id)

        if not wine:
            raise NotFound(WINE_NOT_FOUND)

        return WineSchema(**_wine_fields(wine))

    async def get_wine_details(self, wine_id: str) -> WineDetails:
        wine = await self.wine_repository.find_wine_details(wine_id)

        if not wine:
            raise NotFound(WINE_NOT_FOUND)

        return WineDetails(**_wine_fields(wine), wine_on_consigned=wine.wine_on_consigned)

    async def list_wines(self, search_term: str = None) -> dict[str, list[WineSchema]]:
        wines = await self.wine_repository.find_many(search_term)

        return {"wines": [WineSchema(**_wine_fields(wine)) for wine in wines]}

    async def update_wine(self, wine_id: str, wine: WineInput) -> dict[str, str]:
        if not await self.wine_repository.find_by_id(wine_id):
            raise NotFound(WINE_NOT_FOUND)

        data = wine.model_dump()
        data["price"] = to_cents(wine.price)
        updated_wine = await self.wine_repository.update_wine(wine_id, data)

        return {"wine_id": updated_wine.id}

    async def delete_wine(self, wine_id: str):
        if not await self.wine_repository.find_by_id(wine_id):
            raise NotFound(WINE_NOT_FOUND)

        await self.wine_repository.delete_wine(wine_id)
        logger.info(f"Deleted wine {wine_id}")

    async def list_wine_metrics(self, page: int = 1, page_size: int = 10, search_term: str = None) -> dict[str, list[WineMetric]]:
        if page < 1 or page_size < 1:
            raise BadRequest("page and page_size must be positive")

        rows = await self.wine_repository.wine_metrics(page, page_size, search_term)

        return {"items": [WineMetric.model_validate(row) for row in rows]}
