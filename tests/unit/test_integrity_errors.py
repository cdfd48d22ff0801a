from types import SimpleNamespace

from sqlalchemy.exc import IntegrityError

from cellar.database.models import ModelClass
from cellar.database.crud.utils import translate_integrity_error
from cellar.exceptions import UniqueConstraintError, ForeignKeyConstraintError, CheckConstraintError


def integrity_error(**diagnostics) -> IntegrityError:
    return IntegrityError("UPDATE ...", {}, SimpleNamespace(**diagnostics))


def test_unique_violation_names_fields():
    error = integrity_error(sqlstate="23505", table_name="customers", detail="Key (email)=(rafael@bistrodoporto.com.br) already exists.")
    translated = translate_integrity_error(error, ModelClass.WINE)

    assert isinstance(translated, UniqueConstraintError)
    assert translated.model == "Customer"
    assert translated.fields == ("email",)


def test_foreign_key_violation():
    error = integrity_error(sqlstate="23503", table_name="consigned", detail="Key (customer_id)=(missing) is not present.")

    assert isinstance(translate_integrity_error(error, ModelClass.CONSIGNED), ForeignKeyConstraintError)


def test_check_violation_keeps_constraint_name():
    error = integrity_error(
        sqlstate="23514",
        table_name="wine_on_consigned",
        constraint_name="_balance_non_negative_ck",
        detail="Failing row contains (...)."
    )
    translated = translate_integrity_error(error, ModelClass.WINE_ON_CONSIGNED)

    assert isinstance(translated, CheckConstraintError)
    assert translated.constraint == "_balance_non_negative_ck"
    assert "_balance_non_negative_ck" in translated.message


def test_other_violations_pass_through():
    error = integrity_error(sqlstate="23502", detail="null value in column \"name\"")

    assert translate_integrity_error(error, ModelClass.WINE) is error
