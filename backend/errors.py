from __future__ import annotations


class LifeDashboardError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(LifeDashboardError):
    status_code = 400

    def __init__(self, message: str = "Invalid data", fields: list[str] | None = None) -> None:
        self.fields = list(fields or [])
        if self.fields:
            message = f"{message}: {', '.join(self.fields)}"
        super().__init__(message)


class NotFound(LifeDashboardError):
    status_code = 404

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class Unauthorized(LifeDashboardError):
    status_code = 401

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message)


class AlreadySetup(LifeDashboardError):
    status_code = 400

    def __init__(self, message: str = "Application has already been set up") -> None:
        super().__init__(message)


class InvalidCredentials(LifeDashboardError):
    status_code = 401

    def __init__(self, message: str = "Invalid password") -> None:
        super().__init__(message)


class UpstreamError(LifeDashboardError):
    status_code = 502

    def __init__(self, message: str = "AI backend unavailable") -> None:
        super().__init__(message)


class TransactionAborted(LifeDashboardError):
    status_code = 400

    def __init__(self, message: str = "Import aborted; no data was changed") -> None:
        super().__init__(message)


def error_fields(exc) -> list[str]:
    """Dotted field locations from a pydantic ``ValidationError``, first occurrence only."""
    fields = []
    for error in exc.errors():
        name = ".".join(str(part) for part in error.get("loc") or ()) or "body"
        if name not in fields:
            fields.append(name)
    return fields
