from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from cellar.database.schemas import WineInput
from cellar.exceptions import NotFound, BadRequest
from cellar.services import WineService
from cellar.services.wine import to_cents, from_cents
from tests.utils import row

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository():
    return AsyncMock()


@pytest.fixture
def service(repository):
    return WineService(repository)


def wine_row(**overrides):
    fields = {
        "id": "w1",
        "name": "Catena Malbec",
        "type": "Tinto",
        "price": 18990,
        "producer": "Catena Zapata",
        "country": "Argentina",
        "size": "750ml",
        "harvest": 2021,
        "created_at": NOW,
        "updated_at": NOW
    }
    fields.update(overrides)

    return row(**fields)


WINE_INPUT = WineInput(
    name="Catena Malbec",
    type="Tinto",
    price=189.9,
    producer="Catena Zapata",
    country="Argentina",
    size="750ml",
    harvest=2021
)


@pytest.mark.parametrize("price, cents", [(189.9, 18990), (0.1, 10), (59.99, 5999), (0, 0)])
async def test_to_cents(price, cents):
    assert to_cents(price) == cents


async def test_from_cents():
    assert from_cents(18990) == 189.9


async def test_create_wine_stores_cents(service, repository):
    repository.create_wine.return_value = row(id="w1")

    assert await service.create_wine(WINE_INPUT) == {"wine_id": "w1"}
    data, = repository.create_wine.call_args.args
    assert data["price"] == 18990
    assert data["name"] == "Catena Malbec"


async def test_get_wine_exposes_currency_units(service, repository):
    repository.find_by_id.return_value = wine_row()

    wine = await service.get_wine("w1")

    assert wine.price == 189.9
    assert wine.harvest == 2021


async def test_get_wine_not_found(service, repository):
    repository.find_by_id.return_value = None

    with pytest.raises(NotFound) as exc_info:
        await service.get_wine("w404")

    assert exc_info.value.message == "Vinho não encontrado"


async def test_get_wine_details(service, repository):
    repository.find_wine_details.return_value = wine_row(
        wine_on_consigned=[
            row(wine_id="w1", consigned_id="k1", balance=4,
                consigned=row(id="k1", customer=row(id="c1", name="Bistrô do Porto")))
        ]
    )

    details = await service.get_wine_details("w1")

    assert details.price == 189.9
    assert details.wine_on_consigned[0].consigned.customer.name == "Bistrô do Porto"


async def test_list_wines(service, repository):
    repository.find_many.return_value = [wine_row(), wine_row(id="w2", price=5990)]

    result = await service.list_wines("a")

    assert [w.price for w in result["wines"]] == [189.9, 59.9]


async def test_update_wine(service, repository):
    repository.find_by_id.return_value = wine_row()
    repository.update_wine.return_value = row(id="w1")

    assert await service.update_wine("w1", WINE_INPUT) == {"wine_id": "w1"}
    wine_id, data = repository.update_wine.call_args.args
    assert wine_id == "w1"
    assert data["price"] == 18990


async def test_update_wine_not_found(service, repository):
    repository.find_by_id.return_value = None

    with pytest.raises(NotFound):
        await service.update_wine("w404", WINE_INPUT)


async def test_delete_wine(service, repository):
    repository.find_by_id.return_value = wine_row()

    await service.delete_wine("w1")

    repository.delete_wine.assert_awaited_once_with("w1")


async def test_delete_wine_not_found(service, repository):
    repository.find_by_id.return_value = None

    with pytest.raises(NotFound):
        await service.delete_wine("w404")

    repository.delete_wine.assert_not_awaited()


async def test_list_wine_metrics(service, repository):
    repository.wine_metrics.return_value = [
        {"wine_name": "Catena Malbec", "wine_id": "w1", "updated_at": NOW, "customer_name": "Bistrô do Porto", "total": 1, "total_balance": 7}
    ]

    result = await service.list_wine_metrics(page=2, page_size=5, search_term="malbec")

    repository.wine_metrics.assert_awaited_once_with(2, 5, "malbec")
    assert result["items"][0].total_balance == 7


@pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (-1, 5)])
async def test_list_wine_metrics_rejects_bad_pages(service, repository, page, page_size):
    with pytest.raises(BadRequest):
        await service.list_wine_metrics(page=page, page_size=page_size)

    repository.wine_metrics.assert_not_awaited()
