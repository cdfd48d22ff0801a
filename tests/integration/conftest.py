import os

import pytest
import pytest_asyncio

from cellar.database import PostgresqlDB

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

WINE = {
    "name": "Catena Malbec",
    "type": "Tinto",
    "price": 18990,
    "producer": "Catena Zapata",
    "country": "Argentina",
    "size": "750ml",
    "harvest": 2021
}


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture
async def db():
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL is not set")

    db = PostgresqlDB(TEST_DATABASE_URL)
    await db.recreate_database()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def customer(db):
    return await db.customer.create(
        {
            "name": "Bistrô do Porto",
            "document": "98765432000115",
            "state_registration": "244918301112",
            "email": "Rafael@BistroDoPorto.com.br",
            "address": {"create": {"city": "Rio de Janeiro", "state": "RJ"}}
        },
        include={"address": True}
    )


@pytest_asyncio.fixture
async def wines(db):
    return [
        await db.wine.create(WINE),
        await db.wine.create({**WINE, "name": "Casillero del Diablo", "type": "Branco", "price": 7950, "country": "Chile"})
    ]


@pytest_asyncio.fixture
async def consigned(db, customer, wines):
    return await db.consigned.create(
        {
            "customer_id": customer.id,
            "wines_on_consigned": {
                "create": [
                    {"wine_id": wines[0].id, "count": 6, "balance": 6},
                    {"wine_id": wines[1].id, "count": 2, "balance": 2}
                ]
            }
        },
        include={"wines_on_consigned": True}
    )
