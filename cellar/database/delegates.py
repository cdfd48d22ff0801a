from typing import Generic, TypeVar, Any, Sequence, Iterable, TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from cellar.logging import get_logger
from cellar.exceptions import QueryValidationError, RecordNotFoundError
from .models import (
    ModelClass,
    Customer,
    Address,
    User,
    Role,
    Permission,
    UserRole,
    RolePermission,
    Wine,
    Consigned,
    WineOnConsigned
)
from .crud.filters import covers_unique_set
from .crud.types import Where, OrderBy, Include, Select, AggregateFields

if TYPE_CHECKING:
    from .crud import CRUD

__all__ = [
    "ModelDelegate",
    "Delegates"
]

T = TypeVar("T")
logger = get_logger(__name__)


class ModelDelegate(Generic[T]):
    """Query surface for one model.

    Every call runs in the bound session when the delegate belongs to a
    ``Transaction``, otherwise in a session of its own (or the one already active
    in the current context).
    """
    def __init__(self, db: "CRUD", model_class: ModelClass, session: AsyncSession = None):
        self._db = db
        self._model_class = model_class
        self._session = session
        self._logger = logger.bind(model=model_class.model_name)

    def __repr__(self) -> str:
        bound = " (transaction)" if self._session is not None else ""
        return f"<ModelDelegate {self._model_class.model_name}{bound}>"

    @property
    def model(self) -> type[T]:
        return self._model_class.value

    async def find_unique(self, where: Where, include: Include = None, select: Select = None) -> T | None:
        """Return the row pinned by ``where`` or None.

        Raises:
            QueryValidationError:
                If ``where`` does not cover a primary key or unique field set.
        """
        self._require_unique(where)
        self._log("find_unique", where=where)

        return await self._db.get(self.model, _where=where, _include=include, _select=select, session=self._session)

    async def find_unique_or_raise(self, where: Where, include: Include = None, select: Select = None) -> T:
        instance = await self.find_unique(where, include=include, select=select)

        if instance is None:
            raise RecordNotFoundError(self._model_class.model_name, where)

        return instance

    async def find_first(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        skip: int = 0,
        include: Include = None,
        select: Select = None
    ) -> T | None:
        self._log("find_first", where=where)

        return await self._db.get(
            self.model,
            _where=where,
            _order_by=order_by,
            _offset=skip,
            _include=include,
            _select=select,
            session=self._session
        )

    async def find_first_or_raise(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        skip: int = 0,
        include: Include = None,
        select: Select = None
    ) -> T:
        instance = await self.find_first(where, order_by=order_by, skip=skip, include=include, select=select)

        if instance is None:
            raise RecordNotFoundError(self._model_class.model_name, where)

        return instance

    async def find_many(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        skip: int = 0,
        take: int = None,
        distinct: Sequence[str] = None,
        include: Include = None,
        select: Select = None
    ) -> list[T]:
        self._log("find_many", where=where, skip=skip, take=take)

        return await self._db.get_many(
            self.model,
            _where=where,
            _order_by=order_by,
            _offset=skip,
            _limit=take,
            _distinct=distinct,
            _include=include,
            _select=select,
            session=self._session
        )

    async def create(self, data: dict[str, Any], include: Include = None, select: Select = None) -> T:
        self._log("create")

        return await self._db.create(self.model, data, include=include, select=select, session=self._session)

    async def create_many(self, data: list[dict[str, Any]], skip_duplicates: bool = False) -> int:
        self._log("create_many", rows=len(data), skip_duplicates=skip_duplicates)

        return await self._db.create_many(self.model, data, skip_duplicates=skip_duplicates, session=self._session)

    async def update(self, where: Where, data: dict[str, Any], include: Include = None, select: Select = None) -> T:
        self._log("update", where=where)

        return await self._db.update_where(self.model, where, data, include=include, select=select, session=self._session)

    async def update_many(self, where: Where, data: dict[str, Any]) -> int:
        self._log("update_many", where=where)

        return await self._db.update_all(self.model, where, data, session=self._session)

    async def upsert(
        self,
        where: Where,
        create: dict[str, Any],
        update: dict[str, Any],
        include: Include = None,
        select: Select = None
    ) -> T:
        self._log("upsert", where=where)

        return await self._db.upsert(
            self.model,
            where,
            create,
            update,
            include=include,
            select=select,
            session=self._session
        )

    async def delete(self, where: Where, include: Include = None, select: Select = None) -> T:
        self._log("delete", where=where)

        return await self._db.delete_where(self.model, where, include=include, select=select, session=self._session)

    async def delete_many(self, where: Where = None) -> int:
        self._log("delete_many", where=where)

        return await self._db.delete_all(self.model, where=where, session=self._session)

    async def count(self, where: Where = None, skip: int = 0, take: int = None) -> int:
        return await self._db.count(self.model, _where=where, _offset=skip, _limit=take, session=self._session)

    async def aggregate(
        self,
        where: Where = None,
        order_by: OrderBy = None,
        skip: int = 0,
        take: int = None,
        _count: AggregateFields = None,
        _sum: AggregateFields = None,
        _avg: AggregateFields = None,
        _min: AggregateFields = None,
        _max: AggregateFields = None
    ) -> dict[str, Any]:
        aggregates = {"_count": _count, "_sum": _sum, "_avg": _avg, "_min": _min, "_max": _max}

        return await self._db.aggregate(
            self.model,
            aggregates,
            _where=where,
            _order_by=order_by,
            _offset=skip,
            _limit=take,
            session=self._session
        )

    async def group_by(
        self,
        by: Iterable[str],
        where: Where = None,
        having: Where = None,
        order_by: OrderBy = None,
        skip: int = 0,
        take: int = None,
        _count: AggregateFields = None,
        _sum: AggregateFields = None,
        _avg: AggregateFields = None,
        _min: AggregateFields = None,
        _max: AggregateFields = None
    ) -> list[dict[str, Any]]:
        aggregates = {"_count": _count, "_sum": _sum, "_avg": _avg, "_min": _min, "_max": _max}

        return await self._db.group_by(
            self.model,
            by,
            aggregates,
            _where=where,
            _having=having,
            _order_by=order_by,
            _offset=skip,
            _limit=take,
            session=self._session
        )

    def _require_unique(self, where: Where):
        if not covers_unique_set(self._model_class, where):
            raise QueryValidationError(
                self._model_class.model_name,
                f"where must pin one of the unique field sets {self._model_class.unique_sets}"
            )

    def _log(self, operation: str, **context):
        self._logger.debug(", ".join(f"{k}={v!r}" for k, v in context.items()), extra={"operation": operation})


class Delegates:
    """Mixin exposing one ``ModelDelegate`` per model.

    Delegates are bound to ``self._delegate_session`` when the host sets one.
    """
    _delegate_session: AsyncSession | None = None

    def _delegate(self, model_class: ModelClass) -> ModelDelegate:
        return ModelDelegate(self._delegate_db, model_class, self._delegate_session)

    @property
    def _delegate_db(self) -> "CRUD":
        return self

    @property
    def customer(self) -> ModelDelegate[Customer]:
        return self._delegate(ModelClass.CUSTOMER)

    @property
    def address(self) -> ModelDelegate[Address]:
        return self._delegate(ModelClass.ADDRESS)

    @property
    def user(self) -> ModelDelegate[User]:
        return self._delegate(ModelClass.USER)

    @property
    def role(self) -> ModelDelegate[Role]:
        return self._delegate(ModelClass.ROLE)

    @property
    def permission(self) -> ModelDelegate[Permission]:
        return self._delegate(ModelClass.PERMISSION)

    @property
    def user_role(self) -> ModelDelegate[UserRole]:
        return self._delegate(ModelClass.USER_ROLE)

    @property
    def role_permission(self) -> ModelDelegate[RolePermission]:
        return self._delegate(ModelClass.ROLE_PERMISSION)

    @property
    def wine(self) -> ModelDelegate[Wine]:
        return self._delegate(ModelClass.WINE)

    @property
    def consigned(self) -> ModelDelegate[Consigned]:
        return self._delegate(ModelClass.CONSIGNED)

    @property
    def wine_on_consigned(self) -> ModelDelegate[WineOnConsigned]:
        return self._delegate(ModelClass.WINE_ON_CONSIGNED)
