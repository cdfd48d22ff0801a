from typing import Iterable

from cellar.database.schemas import UserInput, UserUpdate, UserDetails, UserListItem, UserCustomer, RoleRef, CustomerRef, ConsignedRef, AccessToken
from cellar.exceptions import NotFound, Conflict, Unauthorized, ForeignKeyConstraintError
from cellar.logging import get_logger
from cellar.repositories import UserRepository
from cellar.security import hash_password, check_password, generate_token

logger = get_logger(__name__)


class UserService:
    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def create_user(self, user: UserInput) -> dict[str, str]:
        if await self.user_repository.find_by_email(user.email):
            raise Conflict(f"Já existe um usuário com esse email: {user.email}.")

        user = user.model_copy(update={"password": hash_password(user.password)})
        user_created = await self.user_repository.create_user(user)
        logger.info(f"Created user {user_created.id}")

        return {"user_id": user_created.id}

    async def get_user(self, user_id: str) -> UserDetails:
        user = await self.user_repository.find_by_id(user_id)

        if not user:
            raise NotFound("Usuário não encontrado.")

        customer = None

        if user.customer is not None:
            customer = UserCustomer(
                id=user.customer.id,
                name=user.customer.name,
                consigned=[ConsignedRef(id=consigned.id) for consigned in user.customer.consigned]
            )

        return UserDetails(
            id=user.id,
            name=user.name,
            email=user.email,
            roles=[RoleRef(id=user_role.role.id, name=user_role.role.name) for user_role in user.roles],
            customer=customer
        )

    async def list_users(self, search_term: str = None) -> list[UserListItem]:
        users = await self.user_repository.find_many(search_term)

        return [
            UserListItem(
                id=user.id,
                name=user.name,
                email=user.email,
                created_at=user.created_at,
                roles=[RoleRef(id=user_role.role.id, name=user_role.role.name) for user_role in user.roles],
                customer=CustomerRef(id=user.customer.id, name=user.customer.name) if user.customer else None
            )
            for user in users
        ]

    async def update_user(self, user: UserUpdate, user_id: str) -> dict[str, str]:
        if not await self.user_repository.find_by_id(user_id):
            raise NotFound("Usuário não encontrado.")

        if user.email is not None and await self.user_repository.existing_user(user_id, user.email):
            raise Conflict(f"Já existe um usuário com esse email: {user.email}.")

        data = user.model_dump(exclude_none=True)

        if "password" in data:
            data["password"] = hash_password(data["password"])

        if data:
            await self.user_repository.update_user(user_id, data)

        return {"updated_user_id": user_id}

    async def assign_roles(self, user_id: str, role_ids: Iterable[str]) -> dict[str, str | int]:
        if not await self.user_repository.find_by_id(user_id):
            raise NotFound("Usuário não encontrado.")

        try:
            count = await self.user_repository.set_roles(user_id, role_ids)
        except ForeignKeyConstraintError:
            raise NotFound("Perfil não encontrado.")

        logger.info(f"Assigned {count} role(s) to user {user_id}")

        return {"user_id": user_id, "roles": count}

    async def authenticate(self, email: str, password: str) -> AccessToken:
        """Check credentials and issue a token carrying the user's roles and permissions."""
        user = await self.user_repository.find_for_authentication(email)

        if user is None or not check_password(password, user.password):
            logger.warning(f"Failed login attempt for {email!r}")
            raise Unauthorized("Credenciais inválidas.")

        roles = [user_role.role.name for user_role in user.roles]
        permissions = [
            role_permission.permission.name
            for user_role in user.roles
            for role_permission in user_role.role.permissions
        ]

        return AccessToken(access_token=generate_token(user.id, roles, permissions))
