from typing import Any, Iterable


class QueryValidationError(ValueError):
    def __init__(self, model: str, detail: str):
        self.model = model
        self.detail = detail

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        return f"Invalid query for {self.model}: {self.detail}"


class RecordNotFoundError(LookupError):
    def __init__(self, model: str, where: dict[str, Any] = None):
        self.model = model
        self.where = where or {}

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        return f"No {self.model} record matches {self.where!r}"


class UniqueConstraintError(Exception):
    def __init__(self, model: str, fields: Iterable[str] = (), detail: str = None):
        self.model = model
        self.fields = tuple(fields)
        self.detail = detail

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        if self.fields:
            return f"Unique constraint failed on {self.model} field(s): {', '.join(self.fields)}"

        return f"Unique constraint failed on {self.model}" + (f": {self.detail}" if self.detail else "")


class ForeignKeyConstraintError(Exception):
    def __init__(self, model: str, detail: str = None):
        self.model = model
        self.detail = detail

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        return f"Foreign key constraint failed on {self.model}" + (f": {self.detail}" if self.detail else "")


class CheckConstraintError(Exception):
    def __init__(self, model: str, constraint: str = None, detail: str = None):
        self.model = model
        self.constraint = constraint
        self.detail = detail

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        if self.constraint:
            return f"Check constraint '{self.constraint}' failed on {self.model}"

        return f"Check constraint failed on {self.model}" + (f": {self.detail}" if self.detail else "")


class ServiceError(Exception):
    status: int = 500

    def __init__(self, detail: str):
        self.detail = detail

    def __str__(self):
        return self.message

    @property
    def message(self) -> str:
        return self.detail


class NotFound(ServiceError):
    status = 404


class Conflict(ServiceError):
    status = 409


class Unauthorized(ServiceError):
    status = 401


class BadRequest(ServiceError):
    status = 400
