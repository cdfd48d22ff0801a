from enum import StrEnum

__all__ = [
    "RoleName",
    "PermissionName",
    "ConsignedStatus",
    "QueryMode",
    "SortOrder"
]


class RoleName(StrEnum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class PermissionName(StrEnum):
    MANAGE_USERS = "users:manage"
    MANAGE_CUSTOMERS = "customers:manage"
    MANAGE_WINES = "wines:manage"
    MANAGE_CONSIGNMENTS = "consignments:manage"
    VIEW_CONSIGNMENTS = "consignments:view"
    VIEW_WINES = "wines:view"


class ConsignedStatus(StrEnum):
    IN_PROGRESS = "EM_ANDAMENTO"
    FINISHED = "FINALIZADO"
    CANCELED = "CANCELADO"


class QueryMode(StrEnum):
    DEFAULT = "default"
    INSENSITIVE = "insensitive"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"
