from .db import PostgresqlDB, Transaction
from .delegates import ModelDelegate
from .lifespan import db_lifespan

__all__ = [
    "PostgresqlDB",
    "Transaction",
    "ModelDelegate",
    "db_lifespan"
]
