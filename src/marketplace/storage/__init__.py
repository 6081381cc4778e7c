"""File storage factory.

FakeFileStorage by default; FILE_STORAGE=s3 selects the boto3 adapter
configured from S3_* environment variables.
"""

import os

from marketplace.storage.fake_storage import FakeFileStorage
from marketplace.storage.port import FileStorage

_current_storage: FileStorage | None = None


def _storage_from_env() -> FileStorage:
    if os.environ.get("FILE_STORAGE", "fake").lower() == "s3":
        from marketplace.storage.s3_storage import S3FileStorage

        return S3FileStorage(
            bucket=os.environ["S3_BUCKET"],
            public_base_url=os.environ["S3_PUBLIC_BASE_URL"],
            endpoint_url=os.environ.get("S3_ENDPOINT_URL"),
            access_key_id=os.environ.get("S3_ACCESS_KEY_ID"),
            secret_access_key=os.environ.get("S3_SECRET_ACCESS_KEY"),
            region=os.environ.get("S3_REGION", "auto"),
        )
    return FakeFileStorage()


def get_storage() -> FileStorage:
    global _current_storage
    if _current_storage is None:
        _current_storage = _storage_from_env()
    return _current_storage


def set_storage(storage: FileStorage) -> None:
    global _current_storage
    _current_storage = storage


def reset_storage() -> None:
    global _current_storage
    _current_storage = None
