from enum import Enum

__all__ = [
    "Env"
]


class Env(Enum):
    PROD = "prod"
    DEV = "dev"
    TEST = "test"
