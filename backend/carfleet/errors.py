"""Error taxonomy shared by the store, the services and the HTTP layer.

Services raise these; ``carfleet.main`` maps them to ``{"error": ...}``
responses with the status code carried by each class.
"""

from __future__ import annotations


class FleetError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FleetError):
    """Missing or malformed input fields."""

    status_code = 400

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class NotFoundError(FleetError):
    """A referenced record ID has no row in the store."""

    status_code = 404


class ConflictError(FleetError):
    """A precondition no longer holds (car sold, rental overlap, ID race)."""

    status_code = 409


class UpstreamError(FleetError):
    """The record store or the file storage failed."""

    status_code = 500


class AuthenticationError(FleetError):
    """Missing, expired or unknown credentials."""

    status_code = 401


def fields_from_errors(errors: list[dict]) -> list[str]:
    """Field names (wire aliases, dotted when nested) from pydantic error dicts."""
    fields: list[str] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
        if loc and loc[0] in ("body", "query", "path", "header", "form"):
            loc = loc[1:]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return fields
