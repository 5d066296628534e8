"""
Error taxonomy for the catalog.

``ValidationFailed``, ``DuplicateName`` and ``ReferenceBlocked`` are
recovered inside the form controller by re-rendering a view. ``NotFound``
and ``StoreUnavailable`` travel up to the application's exception
handlers and end the request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class CatalogError(Exception):
    """Base class for every catalog error."""


class NotFound(CatalogError):
    """The requested id has no record."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id!r} not found")


class ValidationFailed(CatalogError):
    """Submitted form values did not pass the field rules."""

    def __init__(self, errors: Sequence[Any], echo: Optional[Dict[str, Any]] = None) -> None:
        self.errors: List[Any] = list(errors)
        self.echo: Dict[str, Any] = dict(echo or {})
        fields = ", ".join(sorted({getattr(e, "field", "?") for e in self.errors}))
        super().__init__(f"validation failed for: {fields}")


class DuplicateName(CatalogError):
    """Another genre already carries the submitted name."""

    def __init__(self, name: str, existing: Any = None) -> None:
        self.name = name
        self.existing = existing
        super().__init__(f"Genre already exists: {name!r}")


class ReferenceBlocked(CatalogError):
    """A delete was refused because dependent records still exist."""

    def __init__(self, kind: str, record_id: str, blocking_records: Sequence[Any]) -> None:
        self.kind = kind
        self.record_id = record_id
        self.blocking_records = list(blocking_records)
        super().__init__(
            f"{kind} {record_id!r} still has {len(self.blocking_records)} dependent record(s)"
        )


class StoreUnavailable(CatalogError):
    """The entity store could not complete an operation."""
