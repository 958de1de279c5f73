"""Document store port — abstract interface for shared persistent state.

Core modules depend on this protocol, never on a specific backend.
Every household member acts from their own device, so all state lives here
and the array operations must be atomic at the store level.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol


class StoreError(Exception):
    """Base class for failures raised by a store backend."""


class StoreUnavailable(StoreError):
    """Raised when the store cannot be reached or the I/O fails.

    The only failure a caller may retry without changing its input.
    """

    retryable = True


class DuplicateKey(StoreError):
    """Raised by create() when a unique field value or the id is already taken."""

    retryable = False

    def __init__(self, collection: str, field: str, value: Any) -> None:
        super().__init__(f"{collection}.{field}={value!r} already exists")
        self.collection = collection
        self.field = field
        self.value = value


class DocumentStore(Protocol):
    """Abstract document store used by core modules.

    Documents are JSON-serialisable dicts; every returned document carries
    its own "id".
    """

    def get(self, collection: str, doc_id: str) -> dict | None: ...

    def query(self, collection: str, field: str, value: Any) -> list[dict]: ...

    def create(
        self,
        collection: str,
        data: dict,
        doc_id: str | None = None,
        unique_fields: Iterable[str] = (),
    ) -> str: ...

    def update(self, collection: str, doc_id: str, fields: dict) -> bool: ...

    def upsert(self, collection: str, doc_id: str, fields: dict) -> None: ...

    def swap_field(
        self, collection: str, doc_id: str, field: str, value: Any
    ) -> Any: ...

    def array_union(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> bool: ...

    def array_remove(
        self, collection: str, doc_id: str, field: str, values: Iterable[Any]
    ) -> bool: ...

    def delete(self, collection: str, doc_id: str) -> bool: ...
