from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

_TMP_ROOT = Path(tempfile.mkdtemp(prefix="voluntree-tests-"))
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["BLOB_BACKEND"] = "local"
os.environ["UPLOAD_TEMP_DIR"] = str(_TMP_ROOT / "temp")
os.environ["MEDIA_ROOT"] = str(_TMP_ROOT / "media")
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import voluntree.models  # noqa: E402,F401
from voluntree.db.base import Base  # noqa: E402
from voluntree.models import User  # noqa: E402
from voluntree.storage.blob import BlobStore, BlobStoreError, StoredBlob  # noqa: E402


class FakeBlobStore(BlobStore):
    """Records uploads in memory; ``live`` holds keys that were never destroyed."""

    def __init__(self, *, fail_on_call: int | None = None) -> None:
        self.fail_on_call = fail_on_call
        self.upload_calls = 0
        self.live: dict[str, str] = {}
        self.destroyed: list[str] = []
        self.deleted: list[str] = []

    def upload(self, local_path: str) -> StoredBlob:
        self.upload_calls += 1
        if self.fail_on_call == self.upload_calls:
            raise BlobStoreError("upload rejected")
        key = f"blob-{self.upload_calls}"
        self.live[key] = local_path
        return StoredBlob(url=f"https://cdn.test/{key}", key=key)

    def destroy(self, key: str) -> None:
        self.destroyed.append(key)
        self.live.pop(key, None)

    def delete(self, local_path: str | None) -> None:
        if local_path:
            self.deleted.append(local_path)
        super().delete(local_path)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def blob_store_factory():
    return FakeBlobStore


@pytest.fixture
def make_file(tmp_path):
    def _make(name: str = "image.png", content: bytes = b"\x89PNG fake image") -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)

    return _make


@pytest.fixture
def make_user(db_session):
    def _make(username: str, *, password: str = "secret1", email: str | None = None, **extra) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            fullname=username.title(),
            password=password,
            avatar=f"https://cdn.test/{username}.png",
            **extra,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make
