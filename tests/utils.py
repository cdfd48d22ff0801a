from types import SimpleNamespace

from sqlalchemy.dialects import postgresql


def render(clause) -> str:
    """Render a SQL clause for the PostgreSQL dialect with inlined parameters."""
    return str(clause.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


def row(**fields) -> SimpleNamespace:
    return SimpleNamespace(**fields)
