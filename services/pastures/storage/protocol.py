"""
Object storage protocol and types for pastures.

Defines the ObjectStore Protocol that both backends satisfy, along with the
shared data type and exceptions. One store instance serves one bucket.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# --- Data Types ---


@dataclass(frozen=True)
class ObjectMeta:
    """Metadata about a stored object."""

    bucket: str
    key: str
    size_bytes: int
    content_type: str
    etag: str


# --- Exceptions ---


class ObjectStoreError(Exception):
    """Base exception for object store operations."""


class ObjectNotFoundError(ObjectStoreError):
    """Raised when a requested object does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class ObjectStorePermissionError(ObjectStoreError):
    """Raised when the caller lacks permission for the operation."""


# --- Protocol ---


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol defining the object storage interface.

    All methods are async. Implementations must satisfy this interface
    structurally (duck typing), no inheritance required.
    """

    @property
    def bucket(self) -> str: ...

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> ObjectMeta:
        """Store an object, overwriting any existing content.

        Args:
            key: Object key (path).
            data: Object content.
            content_type: MIME type.

        Returns:
            Metadata of the stored object.
        """
        ...

    async def get(self, key: str) -> bytes:
        """Retrieve an object's content.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the backend."""
        ...
