import re
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import ModelClass
from cellar.exceptions import UniqueConstraintError, ForeignKeyConstraintError, CheckConstraintError
from cellar.logging import get_logger

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
KEY_DETAIL_PATTERN = re.compile(r"Key \((?P<fields>[^)]+)\)=")
logger = get_logger(__name__)


async def flush(model_class: ModelClass, session: AsyncSession):
    """Flush pending changes, translating integrity violations.

    Raises:
        UniqueConstraintError:
            On a unique or primary key violation.
        ForeignKeyConstraintError:
            On a foreign key violation.
        CheckConstraintError:
            On a check constraint violation.
    """
    try:
        await session.flush()
    except IntegrityError as e:
        translated = translate_integrity_error(e, model_class)

        if translated is e:
            raise

        raise translated from e


def translate_integrity_error(error: IntegrityError, model_class: ModelClass) -> Exception:
    """Map a driver-level integrity error onto a client error.

    Other integrity errors (e.g. NOT NULL violations) are returned unchanged.
    """
    diagnostics = _diagnostics(error)
    sqlstate = diagnostics.get("sqlstate")
    detail = diagnostics.get("detail") or str(error.orig)
    model_name = _model_name_for_table(diagnostics.get("table_name"), model_class)

    if sqlstate == UNIQUE_VIOLATION:
        fields = ()

        if match := KEY_DETAIL_PATTERN.search(detail):
            fields = tuple(field.strip() for field in match.group("fields").split(","))

        logger.debug(f"Unique violation on {model_name}: {detail}")
        return UniqueConstraintError(model_name, fields, detail)

    if sqlstate == FOREIGN_KEY_VIOLATION:
        logger.debug(f"Foreign key violation on {model_name}: {detail}")
        return ForeignKeyConstraintError(model_name, detail)

    if sqlstate == CHECK_VIOLATION:
        logger.debug(f"Check violation on {model_name}: {detail}")
        return CheckConstraintError(model_name, diagnostics.get("constraint_name"), detail)

    return error


def _diagnostics(error: IntegrityError) -> dict[str, Any]:
    diagnostics = {}
    candidates = (error.orig, getattr(error.orig, "__cause__", None))

    for key in ("sqlstate", "detail", "table_name", "constraint_name"):
        for candidate in candidates:
            if candidate is None:
                continue

            value = getattr(candidate, key, None)

            if value is None and key == "sqlstate":
                value = getattr(candidate, "pgcode", None)

            if value is not None:
                diagnostics[key] = value
                break

    return diagnostics


def _model_name_for_table(table_name: str | None, default: ModelClass) -> str:
    if table_name is not None:
        for model_class in ModelClass:
            if model_class.value.__tablename__ == table_name:
                return model_class.model_name

    return default.model_name
