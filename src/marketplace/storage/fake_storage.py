"""In-memory file storage for development and testing."""

from uuid import uuid4

from marketplace.storage.port import FileStorage, StoredFile


class FakeFileStorage(FileStorage):
    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_deletes = False

    def upload(self, data: bytes, folder: str, filename: str, content_type: str | None = None) -> StoredFile:
        public_id = f"{folder.strip('/')}/{uuid4().hex[:12]}-{filename}"
        self.objects[public_id] = data
        return StoredFile(url=f"https://files.example.test/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> None:
        if self.fail_deletes:
            raise ConnectionError(f"Storage unavailable while deleting {public_id}")
        self.objects.pop(public_id, None)
        self.deleted.append(public_id)
