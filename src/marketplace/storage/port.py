"""File storage port — uploaded order attachments and delivery files."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredFile:
    url: str
    public_id: str


class FileStorage(ABC):
    """Abstract interface for object storage adapters."""

    @abstractmethod
    def upload(self, data: bytes, folder: str, filename: str, content_type: str | None = None) -> StoredFile:
        """Store bytes under a folder and return the public URL and storage id."""
        ...

    @abstractmethod
    def delete(self, public_id: str) -> None:
        """Release a stored object. Unknown ids are not an error."""
        ...
