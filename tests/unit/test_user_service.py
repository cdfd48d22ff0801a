from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from cellar.database.schemas import UserInput, UserUpdate
from cellar.exceptions import NotFound, Conflict, Unauthorized, ForeignKeyConstraintError
from cellar.security import hash_password, check_password, validate_token
from cellar.services import UserService
from tests.utils import row

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository():
    return AsyncMock()


@pytest.fixture
def service(repository):
    return UserService(repository)


def role_link(role_id: str, name: str, permissions: list[str] = ()):
    return row(role=row(id=role_id, name=name, permissions=[row(permission=row(name=p)) for p in permissions]))


async def test_create_user_hashes_password(service, repository):
    repository.find_by_email.return_value = None
    repository.create_user.return_value = row(id="u1")

    result = await service.create_user(UserInput(email="marina@santaluzia.com.br", name="Marina", password="segredo"))

    assert result == {"user_id": "u1"}
    created, = repository.create_user.call_args.args
    assert created.password != "segredo"
    assert check_password("segredo", created.password)


async def test_create_user_duplicate_email(service, repository):
    repository.find_by_email.return_value = row(id="u0")

    with pytest.raises(Conflict) as exc_info:
        await service.create_user(UserInput(email="marina@santaluzia.com.br", name="Marina", password="segredo"))

    assert exc_info.value.message == "Já existe um usuário com esse email: marina@santaluzia.com.br."
    repository.create_user.assert_not_awaited()


async def test_get_user(service, repository):
    repository.find_by_id.return_value = row(
        id="u1",
        name="Marina",
        email="marina@santaluzia.com.br",
        roles=[role_link("r1", "customer")],
        customer=row(id="c1", name="Empório Santa Luzia", consigned=[row(id="k1"), row(id="k2")])
    )

    user = await service.get_user("u1")

    assert [r.name for r in user.roles] == ["customer"]
    assert user.customer.name == "Empório Santa Luzia"
    assert [c.id for c in user.customer.consigned] == ["k1", "k2"]


async def test_get_user_without_customer(service, repository):
    repository.find_by_id.return_value = row(id="u1", name="Joana", email="joana@cellar.local", roles=[], customer=None)

    assert (await service.get_user("u1")).customer is None


async def test_get_user_not_found(service, repository):
    repository.find_by_id.return_value = None

    with pytest.raises(NotFound) as exc_info:
        await service.get_user("u404")

    assert exc_info.value.message == "Usuário não encontrado."


async def test_list_users(service, repository):
    repository.find_many.return_value = [
        row(id="u1", name="Marina", email="m@x.com", created_at=NOW, roles=[role_link("r1", "customer")],
            customer=row(id="c1", name="Empório Santa Luzia")),
        row(id="u2", name="Joana", email="j@x.com", created_at=NOW, roles=[], customer=None)
    ]

    users = await service.list_users("a")

    assert [u.id for u in users] == ["u1", "u2"]
    assert users[0].customer.id == "c1"
    assert users[1].customer is None


async def test_update_user_rehashes_password(service, repository):
    repository.find_by_id.return_value = row(id="u1")
    repository.existing_user.return_value = None

    result = await service.update_user(UserUpdate(email="novo@x.com", password="nova-senha"), "u1")

    assert result == {"updated_user_id": "u1"}
    user_id, data = repository.update_user.call_args.args
    assert user_id == "u1"
    assert data["email"] == "novo@x.com"
    assert check_password("nova-senha", data["password"])


async def test_update_user_email_taken(service, repository):
    repository.find_by_id.return_value = row(id="u1")
    repository.existing_user.return_value = row(id="u2")

    with pytest.raises(Conflict):
        await service.update_user(UserUpdate(email="taken@x.com"), "u1")

    repository.update_user.assert_not_awaited()


async def test_update_user_without_changes(service, repository):
    repository.find_by_id.return_value = row(id="u1")

    assert await service.update_user(UserUpdate(), "u1") == {"updated_user_id": "u1"}
    repository.update_user.assert_not_awaited()


async def test_update_user_not_found(service, repository):
    repository.find_by_id.return_value = None

    with pytest.raises(NotFound):
        await service.update_user(UserUpdate(name="x"), "u404")


async def test_assign_roles(service, repository):
    repository.find_by_id.return_value = row(id="u1")
    repository.set_roles.return_value = 2

    assert await service.assign_roles("u1", ["r1", "r2"]) == {"user_id": "u1", "roles": 2}


async def test_assign_unknown_role(service, repository):
    repository.find_by_id.return_value = row(id="u1")
    repository.set_roles.side_effect = ForeignKeyConstraintError("UserRole")

    with pytest.raises(NotFound):
        await service.assign_roles("u1", ["r404"])


async def test_authenticate(service, repository):
    repository.find_for_authentication.return_value = row(
        id="u1",
        password=hash_password("segredo"),
        roles=[role_link("r1", "admin", ["users:manage", "wines:manage"]), role_link("r2", "customer", ["wines:view"])]
    )

    token = await service.authenticate("joana@cellar.local", "segredo")
    payload = validate_token(token.access_token)

    assert token.token_type == "bearer"
    assert payload["sub"] == "u1"
    assert payload["roles"] == ["admin", "customer"]
    assert payload["permissions"] == ["users:manage", "wines:manage", "wines:view"]


@pytest.mark.parametrize("user", [None, row(id="u1", password=hash_password("outra"), roles=[])])
async def test_authenticate_rejects_bad_credentials(service, repository, user):
    repository.find_for_authentication.return_value = user

    with pytest.raises(Unauthorized):
        await service.authenticate("joana@cellar.local", "segredo")
