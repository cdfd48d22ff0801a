import pytest
from sqlalchemy.sql import select

from cellar.database.models import ModelClass, Customer, Consigned
from cellar.database.crud.loading import compile_loading
from cellar.database.crud.r import _R
from cellar.exceptions import QueryValidationError
from tests.utils import render


def test_unrequested_relations_are_restricted():
    options = compile_loading(ModelClass.CUSTOMER, include={"address": True})

    # address loader plus raiseload for users and consigned
    assert len(options) == 3


def test_restrict_false_only_returns_requested_loaders():
    assert len(compile_loading(ModelClass.CUSTOMER, include={"address": True}, restrict=False)) == 1
    assert compile_loading(ModelClass.CUSTOMER, restrict=False) == []


def test_false_include_is_ignored():
    assert len(compile_loading(ModelClass.CUSTOMER, include={"address": False})) == len(ModelClass.CUSTOMER.relationship_names)


def test_to_one_include_joins():
    stmt = select(Customer).options(*compile_loading(ModelClass.CUSTOMER, include={"address": True}))

    assert "LEFT OUTER JOIN addresses" in render(stmt)


def test_include_where_narrows_joined_rows():
    stmt = select(Consigned).options(
        *compile_loading(ModelClass.CONSIGNED, include={"customer": {"where": {"disabled_at": None}}})
    )
    sql = render(stmt)

    assert "LEFT OUTER JOIN customers" in sql
    assert "disabled_at IS NULL" in sql


def test_select_loads_only_named_columns():
    stmt = select(Customer).options(*compile_loading(ModelClass.CUSTOMER, select={"name": True, "email": True}))
    sql = render(stmt)

    assert "customers.id" in sql
    assert "customers.name" in sql
    assert "customers.email" in sql
    assert "customers.document" not in sql


def test_select_of_relations_only_loads_primary_key():
    stmt = select(Customer).options(*compile_loading(ModelClass.CUSTOMER, select={"address": True}))
    sql = render(stmt)

    assert "customers.id" in sql
    assert "LEFT OUTER JOIN addresses" in sql
    assert "customers.name" not in sql
    assert "customers.document" not in sql


def test_include_and_select_are_exclusive():
    with pytest.raises(QueryValidationError):
        compile_loading(ModelClass.CUSTOMER, include={"address": True}, select={"name": True})


def test_nested_include_and_select_are_exclusive():
    with pytest.raises(QueryValidationError):
        compile_loading(ModelClass.CUSTOMER, include={"consigned": {"include": {"customer": True}, "select": {"id": True}}})


@pytest.mark.parametrize("include", [
    {"wines": True},
    {"name": True},
    {"consigned": {"order_by": {"created_at": "desc"}}},
    {"consigned": "yes"},
])
def test_invalid_include_raises(include):
    with pytest.raises(QueryValidationError):
        compile_loading(ModelClass.CUSTOMER, include=include)


def test_unknown_select_field_raises():
    with pytest.raises(QueryValidationError):
        compile_loading(ModelClass.CUSTOMER, select={"nickname": True})


def test_reads_with_loading_trees_overwrite_identity_map():
    included = _R._construct_stmt(ModelClass.CONSIGNED, _include={"wines_on_consigned": True})
    selected = _R._construct_stmt(ModelClass.CUSTOMER, _select={"name": True})
    plain = _R._construct_stmt(ModelClass.CUSTOMER, _where={"name": "Bistrô do Porto"})

    assert included.get_execution_options().get("populate_existing") is True
    assert selected.get_execution_options().get("populate_existing") is True
    assert "populate_existing" not in plain.get_execution_options()
