from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    """A required message field is missing or blank."""

    def __init__(self, detail: str = "", field: str | None = None) -> None:
        super().__init__(detail)
        self.field = field


class NotFoundError(AppError):
    pass


class StoreError(AppError):
    """The durable store could not be reached or rejected the query."""
